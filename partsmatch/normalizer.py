"""
Text normalization and identifier extraction for catalog lines and queries.

Every comparison in the matcher happens on normalized text, never on the raw
catalog strings.
"""

import re
from typing import List, Optional

_RX_PUNCT = re.compile(r"[^\w\s]|_")
_RX_SPACES = re.compile(r"\s+")
_RX_CATEGORY_NUMBER = re.compile(r"^\s*\d+(?:[.)]\s*|\s+)")
_RX_NON_ALNUM = re.compile(r"[^a-z0-9]+")

# Brand families, each capturing a brand token next to a number+letter suffix.
# Order matters only for the order of the returned identifiers.
BRAND_PATTERNS = [
    re.compile(r"\b(?:redmi|mi|poco)\s*(?:note\s*)?[a-z]?\d+[a-z]*\b"),
    re.compile(r"\b(?:samsung|galaxy)\s*(?:galaxy\s*)?[a-z]{1,2}\d+[a-z]*\b"),
    re.compile(r"\b(?:oppo|realme|oneplus)\s*(?:narzo\s*|nord\s*)?[a-z]{0,2}\d+[a-z]*\b"),
    re.compile(r"\b(?:vivo|iqoo)\s*(?:neo\s*)?[a-z]{0,2}\d+[a-z]*\b"),
    re.compile(r"\b(?:infinix|tecno|itel)\s*(?:hot\s*|smart\s*|note\s*|spark\s*|camon\s*|pova\s*)?[a-z]?\d+[a-z]*\b"),
    re.compile(r"\b(?:moto|motorola|lava)\s*(?:moto\s*)?[a-z]{0,2}\d+[a-z]*\b"),
]

# Generic fallback: "a15", "m31s" style and "15a", "5g" style runs.
_RX_LETTERS_DIGITS = re.compile(r"\b[a-z]+\d+\b")
_RX_DIGITS_LETTERS = re.compile(r"\b\d+[a-z]+\b")


def normalize(text: Optional[str]) -> str:
    """Lowercase, turn punctuation into spaces, collapse whitespace and trim."""
    if not text:
        return ""
    cleaned = _RX_PUNCT.sub(" ", str(text).lower())
    return _RX_SPACES.sub(" ", cleaned).strip()


def compact(text: str) -> str:
    """Drop all whitespace (used for space-insensitive comparison)."""
    return _RX_SPACES.sub("", text or "")


def extract_identifiers(normalized_text: Optional[str]) -> List[str]:
    """
    Pull brand+model tokens such as "redminote10s" or "a15" out of normalized text.

    Returns identifiers in discovery order with duplicates removed, so the
    output is deterministic for a given input.
    """
    if not normalized_text:
        return []

    found = {}
    for pattern in BRAND_PATTERNS:
        for match in pattern.finditer(normalized_text):
            found.setdefault(compact(match.group(0)).lower(), None)

    for pattern in (_RX_LETTERS_DIGITS, _RX_DIGITS_LETTERS):
        for match in pattern.finditer(normalized_text):
            found.setdefault(match.group(0), None)

    return list(found)


def category_key(name: Optional[str]) -> str:
    """
    Stable lookup key for a category display name.

    "1. Screens" -> "screens", "Back Glass / Housing" -> "back_glass_housing"
    """
    if not name:
        return ""
    key = _RX_CATEGORY_NUMBER.sub("", str(name).lower())
    key = _RX_NON_ALNUM.sub("_", key)
    return key.strip("_")
