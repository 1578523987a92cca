"""
Decides whether a free-text model query matches a catalog entry.

Rules run in a fixed priority order for every model in the entry's source
line. A rule either accepts with a score, rejects the candidate outright
(no weaker rule gets a chance), or has nothing to say and lets the next rule
run. The note-series and model-number rules exist to stop "Note 10" from
matching "Note 10 Pro" lines and "A15" from matching "A155" lines.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from partsmatch.indexer import ModelEntry
from partsmatch.normalizer import normalize, compact, extract_identifiers

KIND_EXACT = "exact"
KIND_EXACT_NORMALIZED = "exact_normalized"
KIND_NOTE_VARIANT = "note_exact_variant"
KIND_NOTE_SERIES = "note_series"
KIND_LIST_ITEM = "list_item"
KIND_IDENTIFIER = "identifier_match"

# Longer variants first so "pro max" is not read as plain "pro".
_RX_NOTE = re.compile(
    r"note[\s-]*(\d+)(?:\s*(pro max|pro plus|pro\+|pro|plus|max|ultra|lite|se|prime)\b)?"
)
_RX_MODEL_NUMBER = re.compile(r"[a-z]\d+")
_RX_LIST_NUMBER = re.compile(r"^\d+\s+")

VARIANT_CLASSES = {
    "pro": "pro",
    "pro+": "proplus",
    "proplus": "proplus",
    "plus": "plus",
    "promax": "promax",
    "max": "max",
    "ultra": "ultra",
    "lite": "lite",
    "se": "se",
    "prime": "prime",
}


@dataclass(frozen=True)
class Accept:
    score: int
    kind: str


class _Reject:
    def __repr__(self):
        return "REJECT"


REJECT = _Reject()
UNDETERMINED = None


@dataclass(frozen=True)
class MatchResult:
    matched: bool
    score: int = 0
    kind: Optional[str] = None
    entry: Optional[ModelEntry] = None
    matched_text: Optional[str] = None


NO_MATCH = MatchResult(matched=False)


@dataclass(frozen=True)
class _Context:
    query: str
    candidate: str
    brand: str


def _forms(text: str, brand: str) -> List[str]:
    """The text itself, plus the text without a leading brand name."""
    forms = [text]
    if brand and text.startswith(brand + " "):
        forms.append(text[len(brand) + 1:])
    return forms


def _exact(ctx: _Context):
    query_forms = _forms(ctx.query, ctx.brand)
    for form in _forms(ctx.candidate, ctx.brand):
        if form in query_forms:
            return Accept(100, KIND_EXACT)
    return UNDETERMINED


def _exact_compact(ctx: _Context):
    query_forms = {compact(f) for f in _forms(ctx.query, ctx.brand)}
    for form in _forms(ctx.candidate, ctx.brand):
        if compact(form) in query_forms:
            return Accept(95, KIND_EXACT_NORMALIZED)
    return UNDETERMINED


def parse_note(text: str) -> Optional[Tuple[str, Optional[str]]]:
    """Return (number, variant class) for a note-series name, e.g. ("10", "promax"), or None."""
    match = _RX_NOTE.search(text)
    if not match:
        return None
    variant = match.group(2)
    if variant:
        variant = VARIANT_CLASSES.get(variant.replace(" ", ""), variant.replace(" ", ""))
    return match.group(1), variant


def _note_series(ctx: _Context):
    if "note" not in ctx.query or "note" not in ctx.candidate:
        return UNDETERMINED
    query_note = parse_note(ctx.query)
    candidate_note = parse_note(ctx.candidate)
    if query_note is None or candidate_note is None:
        return UNDETERMINED

    (query_number, query_variant), (candidate_number, candidate_variant) = query_note, candidate_note
    if query_number != candidate_number:
        return REJECT
    if query_variant and candidate_variant:
        return Accept(90, KIND_NOTE_VARIANT) if query_variant == candidate_variant else REJECT
    if query_variant or candidate_variant:
        # base model must not match a variant, and vice versa
        return REJECT
    return Accept(85, KIND_NOTE_SERIES)


def _model_number_guard(ctx: _Context):
    query_token = _RX_MODEL_NUMBER.search(ctx.query)
    if not query_token:
        return UNDETERMINED
    candidate_token = _RX_MODEL_NUMBER.search(ctx.candidate)
    if candidate_token and candidate_token.group(0) != query_token.group(0):
        return REJECT
    return UNDETERMINED


def _list_item(ctx: _Context):
    if not _RX_LIST_NUMBER.match(ctx.candidate):
        return UNDETERMINED
    stripped = _RX_LIST_NUMBER.sub("", ctx.candidate)
    if stripped == ctx.query or compact(stripped) == compact(ctx.query):
        return Accept(90, KIND_LIST_ITEM)
    return UNDETERMINED


def _identifier_overlap(ctx: _Context):
    shared = set(extract_identifiers(ctx.query)) & set(extract_identifiers(ctx.candidate))
    if shared and (ctx.query in ctx.candidate or ctx.candidate in ctx.query):
        return Accept(80, KIND_IDENTIFIER)
    return UNDETERMINED


RULES: List[Callable[[_Context], object]] = [
    _exact,
    _exact_compact,
    _note_series,
    _model_number_guard,
    _list_item,
    _identifier_overlap,
]


def _evaluate(ctx: _Context) -> Optional[Accept]:
    for rule in RULES:
        outcome = rule(ctx)
        if outcome is REJECT:
            return None
        if outcome is not UNDETERMINED:
            return outcome
    return None


def score(query: str, entry: ModelEntry) -> MatchResult:
    """
    Score a query against every model in the entry's source line.

    The highest scoring candidate wins; on equal scores the earlier model in
    the line is kept. Returns NO_MATCH when no candidate is accepted.
    """
    q = normalize(query)
    if not q:
        return NO_MATCH

    brand = normalize(entry.brand)
    candidates = entry.candidates or ((entry.text, entry.normalized),)
    best = NO_MATCH
    for original, candidate in candidates:
        accepted = _evaluate(_Context(query=q, candidate=candidate, brand=brand))
        if accepted and accepted.score > best.score:
            best = MatchResult(
                matched=True,
                score=accepted.score,
                kind=accepted.kind,
                entry=entry,
                matched_text=original,
            )
            if best.score == 100:
                break
    return best
