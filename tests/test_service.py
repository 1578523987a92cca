import json
import pytest

from partsmatch.search_log import SearchLog
from partsmatch.service import PartsMatchService
from utils.custom_exception import CategoryNotFoundError, CustomException


def test_service_init(catalog_file):
    service = PartsMatchService(catalog_path=catalog_file)
    assert len(service.index) == 2
    assert service.index.entry_count == 12
    assert service.loaded_at is not None


def test_service_search(catalog_file):
    service = PartsMatchService(catalog_path=catalog_file)
    response = service.search("screens", "Note 10S")
    assert response.total_matches == 1


def test_service_missing_catalog_degrades(tmp_path):
    service = PartsMatchService(catalog_path=str(tmp_path / "missing.json"))
    assert len(service.index) == 0
    with pytest.raises(CategoryNotFoundError):
        service.search("screens", "Note 10S")


def test_list_categories(catalog_file):
    listing = PartsMatchService(catalog_path=catalog_file).list_categories()
    assert listing[0] == {"key": "screens", "name": "1. Screens", "brands": ["Redmi", "Samsung"], "entries": 9}
    assert listing[1]["key"] == "batteries"


def test_reload_swaps_engine(catalog_file, sample_catalog):
    service = PartsMatchService(catalog_path=catalog_file)
    old_engine = service.engine

    sample_catalog["categories"].append({"name": "3. Back Glass", "brands": [{"name": "Oppo", "models": ["Oppo A54 = Oppo A55"]}]})
    with open(catalog_file, "w", encoding="utf-8") as f:
        json.dump(sample_catalog, f)

    index = service.reload()
    assert "back_glass" in index
    assert service.engine is not old_engine
    assert "back_glass" not in old_engine.index
    assert service.search("glass", "Oppo A55").total_matches == 1


def test_reload_with_broken_catalog_keeps_current_index(catalog_file):
    service = PartsMatchService(catalog_path=catalog_file)
    old_engine = service.engine

    with open(catalog_file, "w", encoding="utf-8") as f:
        f.write("{broken")

    with pytest.raises(CustomException):
        service.reload()
    assert service.engine is old_engine
    assert len(service.index) == 2
    assert service.search("screens", "Note 10S").total_matches == 1


def test_build_does_not_swap_engine(catalog_file):
    service = PartsMatchService(catalog_path=catalog_file)
    engine = service.build()
    assert engine is not service.engine
    assert len(engine.index) == 2


def test_stats_with_search_log(catalog_file, tmp_path):
    search_log = SearchLog(str(tmp_path / "logs"))
    try:
        service = PartsMatchService(catalog_path=catalog_file, search_log=search_log)
        service.search("screens", "Note 10S")
        stats = service.stats()
    finally:
        search_log.close()

    assert stats["index"]["categories"] == 2
    assert stats["index"]["entries"] == 12
    assert stats["index"]["lines"] == 6
    assert stats["index"]["per_category"] == {"screens": 9, "batteries": 3}
    assert stats["searches"]["total_searches"] == 1
    assert stats["session"]["searches"] == 1
