from typing import Any, Dict, List, Tuple
from utils.logger import get_logger
from utils.custom_exception import InvalidQueryError

logger = get_logger(__name__)


class CatalogValidator:
    """
    Coerces a raw catalog structure into the shape the indexer expects:
    {"categories": [{"name": str, "brands": [{"name": str, "models": [str, ...]}]}]}

    Malformed pieces are replaced with empty collections instead of raising,
    so a broken catalog degrades to an empty index.
    """

    def __init__(self, catalog: Any):
        self.catalog = catalog
        self.issues: List[str] = []

    def run_all_validations(self) -> Dict[str, List[Dict[str, Any]]]:
        """
        Run all validations on the catalog.
        Returns:
            dict: Sanitized catalog with only well-formed categories, brands and lines.
        """
        categories = self._validate_root()
        cleaned = [c for c in (self._validate_category(i, raw) for i, raw in enumerate(categories)) if c]

        if self.issues:
            logger.warning({"message": "Catalog has malformed entries", "issue_count": len(self.issues)})
            for issue in self.issues[:20]:
                logger.debug({"message": "Catalog issue", "detail": issue})
        logger.info({"message": "Catalog validated", "category_count": len(cleaned)})
        return {"categories": cleaned}

    def _validate_root(self) -> list:
        if not isinstance(self.catalog, dict):
            self.issues.append(f"catalog root is {type(self.catalog).__name__}, expected object")
            return []
        categories = self.catalog.get("categories")
        if not isinstance(categories, list):
            self.issues.append("'categories' is missing or not a list")
            return []
        return categories

    def _validate_category(self, position: int, raw: Any):
        if not isinstance(raw, dict) or not self._is_name(raw.get("name")):
            self.issues.append(f"category #{position} has no name")
            return None

        brands = raw.get("brands")
        if not isinstance(brands, list):
            self.issues.append(f"category '{raw['name']}' has no brands list")
            brands = []

        cleaned_brands = []
        for j, brand in enumerate(brands):
            if not isinstance(brand, dict) or not self._is_name(brand.get("name")):
                self.issues.append(f"brand #{j} in '{raw['name']}' has no name")
                continue
            models = brand.get("models")
            if not isinstance(models, list):
                self.issues.append(f"brand '{brand['name']}' in '{raw['name']}' has no models list")
                models = []
            lines = [m for m in models if isinstance(m, str)]
            if len(lines) != len(models):
                self.issues.append(f"brand '{brand['name']}' has {len(models) - len(lines)} non-text lines")
            cleaned_brands.append({"name": brand["name"].strip(), "models": lines})

        return {"name": raw["name"].strip(), "brands": cleaned_brands}

    @staticmethod
    def _is_name(value: Any) -> bool:
        return isinstance(value, str) and bool(value.strip())


def validate_query(part, model) -> Tuple[str, str]:
    """
    Check that both search parameters are present.
    Returns:
        tuple: (part, model) stripped of surrounding whitespace.
    Raises:
        InvalidQueryError: If either parameter is missing or blank.
    """
    part = part.strip() if isinstance(part, str) else ""
    model = model.strip() if isinstance(model, str) else ""
    missing = [name for name, value in (("part", part), ("model", model)) if not value]
    if missing:
        raise InvalidQueryError(f"{' and '.join(missing)} required")
    return part, model
