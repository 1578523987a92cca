import json
import pytest

from partsmatch.indexer import build_index
from partsmatch.search import SearchEngine

SAMPLE_CATALOG = {
    "categories": [
        {
            "name": "1. Screens",
            "brands": [
                {
                    "name": "Redmi",
                    "models": [
                        "Redmi Note 10 = Redmi Note 10S",
                        "Redmi Note 10 Pro = Redmi Note 10 Pro Max",
                        "7. Redmi 9",
                        "Redmi Note 12 coming soon",
                    ],
                },
                {
                    "name": "Samsung",
                    "models": [
                        "Samsung A15 = Samsung A15 5G",
                        "Samsung A155 = Samsung A155F",
                    ],
                },
            ],
        },
        {
            "name": "2. Batteries",
            "brands": [
                {
                    "name": "Infinix",
                    "models": [
                        "Infinix Hot 10 = Infinix Hot 10 Play = Tecno Spark 7",
                        "New list universal",
                    ],
                },
            ],
        },
    ]
}


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch):
    monkeypatch.setenv("ADMIN_KEY", "test-admin-key")
    monkeypatch.setenv("MAX_RESULTS", "20")


@pytest.fixture
def sample_catalog():
    return json.loads(json.dumps(SAMPLE_CATALOG))


@pytest.fixture
def catalog_file(tmp_path, sample_catalog):
    path = tmp_path / "data.json"
    path.write_text(json.dumps(sample_catalog), encoding="utf-8")
    return str(path)


@pytest.fixture
def index(sample_catalog):
    return build_index(sample_catalog)


@pytest.fixture
def engine(index):
    return SearchEngine(index)
