import json
import os
from typing import Any, Dict

import chardet

from utils.logger import get_logger
from utils.custom_exception import CustomException

logger = get_logger(__name__)

EMPTY_CATALOG: Dict[str, Any] = {"categories": []}


class CatalogLoader:
    def __init__(self, file_path: str = "data/data.json"):
        self.file_path = file_path

    def read(self) -> Dict[str, Any]:
        """Detect encoding + parse the catalog JSON. Raises CustomException on failure."""
        try:
            with open(self.file_path, "rb") as f:
                raw = f.read()
            encoding = chardet.detect(raw)["encoding"] or "utf-8"
            catalog = json.loads(raw.decode(encoding))
            logger.info(f"Loaded catalog {self.file_path} ({len(raw)} bytes, {encoding})")
            return catalog
        except (OSError, UnicodeDecodeError, LookupError, ValueError) as e:
            raise CustomException(f"Failed to load catalog from {self.file_path}", e)

    def load(self) -> Dict[str, Any]:
        """Like read(), but a missing or broken file degrades to an empty catalog."""
        if not os.path.exists(self.file_path):
            logger.error(f"Catalog file not found: {self.file_path}; serving an empty index")
            return dict(EMPTY_CATALOG)
        try:
            return self.read()
        except CustomException as ce:
            logger.error(f"{ce}; serving an empty index")
            return dict(EMPTY_CATALOG)
