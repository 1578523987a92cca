import threading
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from partsmatch.catalog_loader import CatalogLoader
from partsmatch.config import Config
from partsmatch.indexer import build_index, SearchIndex
from partsmatch.search import SearchEngine, SearchResponse
from partsmatch.search_log import SearchLog
from utils.custom_exception import CustomException
from utils.logger import get_logger

logger = get_logger(__name__)


class PartsMatchService:
    """
    Owns the live search engine. The index is built once up front; reload()
    builds a replacement off to the side and swaps the reference in one step,
    so requests already running keep the engine they started with.
    """

    def __init__(
        self,
        catalog_path: str = Config.CATALOG_PATH,
        search_log: Optional[SearchLog] = None,
        max_results: int = Config.MAX_RESULTS,
        exact_threshold: int = Config.EXACT_THRESHOLD,
    ):
        self.catalog_path = catalog_path
        self.search_log = search_log
        self.max_results = max_results
        self.exact_threshold = exact_threshold
        self.started_at = time.time()
        self.loaded_at: Optional[datetime] = None
        self._reload_lock = threading.Lock()
        self.engine = self.build()
        self.loaded_at = datetime.now()

    @property
    def index(self) -> SearchIndex:
        return self.engine.index

    def load_catalog(self, strict: bool = False) -> Dict[str, Any]:
        """Catalog contents; with strict=True an unreadable file raises instead of yielding an empty catalog."""
        loader = CatalogLoader(self.catalog_path)
        return loader.read() if strict else loader.load()

    def build(self, strict: bool = False, show_progress: bool = False) -> SearchEngine:
        """Build a fresh index and engine from the catalog file without touching the live one."""
        index = build_index(self.load_catalog(strict=strict), show_progress=show_progress)
        return SearchEngine(
            index,
            observer=self.search_log,
            max_results=self.max_results,
            exact_threshold=self.exact_threshold,
        )

    def reload(self) -> SearchIndex:
        """
        Rebuild from the catalog file and swap the live engine.

        Raises:
            CustomException: If the catalog cannot be read; the current engine stays live.
        """
        with self._reload_lock:
            try:
                engine = self.build(strict=True)
            except CustomException as ce:
                logger.error(f"Catalog reload failed, keeping {len(self.index)} categories live: {ce}")
                raise
            self.engine = engine
            self.loaded_at = datetime.now()
        logger.info(f"🔁 Catalog reloaded: {len(engine.index)} categories, {engine.index.entry_count} entries")
        return engine.index

    def search(self, part: str, model: str) -> SearchResponse:
        return self.engine.search(part, model)

    def list_categories(self) -> List[Dict[str, Any]]:
        return [
            {
                "key": category.key,
                "name": category.name,
                "brands": [brand.name for brand in category.brands],
                "entries": len(category.entries),
            }
            for category in self.index
        ]

    def stats(self) -> Dict[str, Any]:
        index = self.index
        stats = {
            "catalog_path": self.catalog_path,
            "loaded_at": self.loaded_at.isoformat(timespec="seconds") if self.loaded_at else None,
            "uptime_seconds": round(time.time() - self.started_at, 1),
            "index": {
                "categories": len(index),
                "entries": index.entry_count,
                "lines": sum(c.line_count for c in index),
                "per_category": {c.key: len(c.entries) for c in index},
            },
        }
        if self.search_log is not None:
            stats["searches"] = self.search_log.summary()
            stats["session"] = self.search_log.counters()
        return stats
