from dataclasses import dataclass, field, asdict
from typing import Any, Callable, Dict, List, Optional

from partsmatch.indexer import SearchIndex, CategoryIndex
from partsmatch.normalizer import category_key
from partsmatch.scorer import score, MatchResult
from utils.custom_exception import CategoryNotFoundError
from utils.validators import validate_query
from utils.logger import get_logger

logger = get_logger(__name__)

MAX_RESULTS = 20
EXACT_THRESHOLD = 95


@dataclass
class SearchHit:
    brand: str
    compatibility: str
    match_type: str
    score: int
    matched_model: str


@dataclass
class SearchResponse:
    part: str
    category: str
    model: str
    total_matches: int
    exact_matches: int
    results: List[SearchHit] = field(default_factory=list)
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SearchEvent:
    part: str
    model: str
    category: str
    result_count: int
    exact_count: int


class SearchEngine:
    """
    Runs the match scorer over one category of a read-only SearchIndex.

    The optional observer is called once per completed search with a
    SearchEvent; its failures are logged and never reach the caller.
    """

    def __init__(
        self,
        index: SearchIndex,
        observer: Optional[Callable[[SearchEvent], None]] = None,
        max_results: int = MAX_RESULTS,
        exact_threshold: int = EXACT_THRESHOLD,
    ):
        self.index = index
        self.observer = observer
        self.max_results = max_results
        self.exact_threshold = exact_threshold

    def available_categories(self) -> List[Dict[str, str]]:
        return [{"key": c.key, "name": c.name} for c in self.index]

    def resolve_category(self, hint: str) -> CategoryIndex:
        """First category (in build order) whose key or display name fits the hint."""
        hint_lower = (hint or "").strip().lower()
        hint_key = category_key(hint)
        if hint_lower:
            for category in self.index:
                if hint_key and (hint_key in category.key or category.key in hint_key):
                    return category
                if hint_lower in category.name.lower():
                    return category
        raise CategoryNotFoundError(hint, self.available_categories())

    def search(self, part: str, model: str) -> SearchResponse:
        part, model = validate_query(part, model)
        category = self.resolve_category(part)

        matches: List[MatchResult] = []
        for entry in category.entries:
            result = score(model, entry)
            if result.matched:
                matches.append(result)

        # sorted() is stable, so equal scores keep discovery order
        matches = sorted(matches, key=lambda m: m.score, reverse=True)
        seen = set()
        unique: List[MatchResult] = []
        for match in matches:
            if match.entry.group_line in seen:
                continue
            seen.add(match.entry.group_line)
            unique.append(match)

        exact_count = sum(1 for m in unique if m.score >= self.exact_threshold)
        hits = [
            SearchHit(
                brand=m.entry.brand,
                compatibility=m.entry.group_line,
                match_type=m.kind,
                score=m.score,
                matched_model=m.matched_text or m.entry.text,
            )
            for m in unique[:self.max_results]
        ]

        if unique:
            message = f"Found {len(unique)} compatible listings for {model}"
        else:
            message = f"No exact matches found for {model}."

        response = SearchResponse(
            part=category.key,
            category=category.name,
            model=model,
            total_matches=len(unique),
            exact_matches=exact_count,
            results=hits,
            message=message,
        )
        self._notify(SearchEvent(
            part=part,
            model=model,
            category=category.key,
            result_count=len(unique),
            exact_count=exact_count,
        ))
        return response

    def _notify(self, event: SearchEvent):
        if self.observer is None:
            return
        try:
            self.observer(event)
        except Exception as e:
            logger.warning(f"Search observer failed for '{event.model}' in '{event.category}': {e}")
