import pytest
from unittest.mock import MagicMock

from partsmatch.indexer import build_index
from partsmatch.scorer import score
from partsmatch.search import SearchEngine, SearchEvent
from utils.custom_exception import CategoryNotFoundError, InvalidQueryError

SCENARIO = {"categories": [{"name": "1. Screens", "brands": [{"name": "Redmi", "models": [
    "Redmi Note 10 = Redmi Note 10S",
    "Redmi Note 10 Pro = Redmi Note 10 Pro Max",
]}]}]}


def _engine(*lines, brand="Redmi", **kwargs):
    catalog = {"categories": [{"name": "Screens", "brands": [{"name": brand, "models": list(lines)}]}]}
    return SearchEngine(build_index(catalog), **kwargs)


def test_scenario_exact_model():
    response = SearchEngine(build_index(SCENARIO)).search("screens", "Note 10S")
    assert response.part == "screens"
    assert response.category == "1. Screens"
    assert response.total_matches == 1
    assert response.exact_matches == 1
    (hit,) = response.results
    assert hit.compatibility == "Redmi Note 10 = Redmi Note 10S"
    assert hit.score == 100
    assert hit.match_type == "exact"
    assert hit.brand == "Redmi"
    assert response.message == "Found 1 compatible listings for Note 10S"


def test_scenario_variant_model():
    response = SearchEngine(build_index(SCENARIO)).search("screens", "Note 10 Pro Max")
    assert response.total_matches == 1
    assert response.results[0].compatibility == "Redmi Note 10 Pro = Redmi Note 10 Pro Max"
    assert response.results[0].score >= 90


def test_scenario_no_match():
    response = SearchEngine(build_index(SCENARIO)).search("screens", "Note 99")
    assert response.total_matches == 0
    assert response.exact_matches == 0
    assert response.results == []
    assert response.message == "No exact matches found for Note 99."


def test_dedup_by_compatibility_line():
    engine = _engine("Samsung M31 = Samsung M31s = Samsung M31 Prime", brand="Samsung")
    entries = engine.index.get("screens").entries
    assert sum(score("M31", e).matched for e in entries) >= 2

    response = engine.search("screens", "M31")
    assert response.total_matches == 1
    assert len(response.results) == 1


def test_results_sorted_by_score_and_stable_on_ties():
    engine = _engine("Redmi 9 Prime", "7. Redmi 9", "Redmi 9 Power", "Redmi 9")
    response = engine.search("screens", "Redmi 9")
    assert [h.compatibility for h in response.results] == ["Redmi 9", "7. Redmi 9", "Redmi 9 Prime", "Redmi 9 Power"]
    assert [h.score for h in response.results] == [100, 90, 80, 80]
    assert response.exact_matches == 1


def test_results_are_capped_but_total_is_not():
    engine = _engine("Redmi 9 Prime", "7. Redmi 9", "Redmi 9 Power", "Redmi 9", max_results=2)
    response = engine.search("screens", "Redmi 9")
    assert response.total_matches == 4
    assert len(response.results) == 2


def test_guards_apply_in_search(engine):
    response = engine.search("screens", "Samsung A15")
    assert [h.compatibility for h in response.results] == ["Samsung A15 = Samsung A15 5G"]

    response = engine.search("screens", "Redmi Note 10")
    assert [h.compatibility for h in response.results] == ["Redmi Note 10 = Redmi Note 10S"]


@pytest.mark.parametrize("hint, key", [
    ("screens", "screens"),
    ("Screen", "screens"),
    ("SCREENS", "screens"),
    ("1. Screens", "screens"),
    ("batt", "batteries"),
])
def test_resolve_category(engine, hint, key):
    assert engine.resolve_category(hint).key == key


def test_resolve_category_first_in_build_order():
    catalog = {"categories": [
        {"name": "Screens", "brands": []},
        {"name": "Screen Guards", "brands": []},
    ]}
    engine = SearchEngine(build_index(catalog))
    assert engine.resolve_category("screen").key == "screens"
    assert engine.resolve_category("guard").key == "screen_guards"


def test_unknown_category(engine):
    with pytest.raises(CategoryNotFoundError) as exc_info:
        engine.search("chargers", "Redmi 9")
    assert {"key": "screens", "name": "1. Screens"} in exc_info.value.available
    assert exc_info.value.hint == "chargers"


def test_empty_index_reports_category_not_found():
    engine = SearchEngine(build_index(None))
    with pytest.raises(CategoryNotFoundError) as exc_info:
        engine.search("screens", "Redmi 9")
    assert exc_info.value.available == []


@pytest.mark.parametrize("part, model", [("", "Redmi 9"), ("screens", None), ("  ", "  "), (None, None)])
def test_missing_parameters(engine, part, model):
    with pytest.raises(InvalidQueryError):
        engine.search(part, model)


def test_observer_receives_event(index):
    observer = MagicMock()
    engine = SearchEngine(index, observer=observer)
    engine.search(" screens ", "Note 10S")
    observer.assert_called_once_with(SearchEvent(
        part="screens", model="Note 10S", category="screens", result_count=1, exact_count=1
    ))


def test_observer_failure_does_not_break_search(index):
    observer = MagicMock(side_effect=RuntimeError("disk full"))
    engine = SearchEngine(index, observer=observer)
    response = engine.search("screens", "Note 10S")
    assert response.total_matches == 1
    observer.assert_called_once()


def test_observer_not_called_for_unknown_category(index):
    observer = MagicMock()
    engine = SearchEngine(index, observer=observer)
    with pytest.raises(CategoryNotFoundError):
        engine.search("chargers", "Redmi 9")
    observer.assert_not_called()


def test_response_to_dict(engine):
    data = engine.search("screens", "Note 10S").to_dict()
    assert set(data) == {"part", "category", "model", "total_matches", "exact_matches", "results", "message"}
    assert data["results"][0]["matched_model"] == "Redmi Note 10S"
