import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple
from tqdm import tqdm

from partsmatch.config import Config
from partsmatch.normalizer import normalize, extract_identifiers, category_key
from utils.validators import CatalogValidator
from utils.logger import get_logger

logger = get_logger(__name__)

_RX_LIST_PREFIX = re.compile(r"^\d+\.\s*")


@dataclass(frozen=True)
class ModelEntry:
    brand: str
    text: str
    normalized: str
    group_line: str
    identifiers: Tuple[str, ...] = ()
    # (original piece, normalized piece) for every model in the source line
    candidates: Tuple[Tuple[str, str], ...] = ()


@dataclass(frozen=True)
class BrandGroup:
    name: str
    lines: Tuple[str, ...]


@dataclass(frozen=True)
class CategoryIndex:
    key: str
    name: str
    entries: Tuple[ModelEntry, ...]
    brands: Tuple[BrandGroup, ...]

    @property
    def line_count(self) -> int:
        return len({e.group_line for e in self.entries})


@dataclass(frozen=True)
class SearchIndex:
    """Read-only mapping of category key -> CategoryIndex, in build order."""
    categories: Mapping[str, CategoryIndex] = field(default_factory=lambda: MappingProxyType({}))

    def get(self, key: str) -> Optional[CategoryIndex]:
        return self.categories.get(key)

    def __iter__(self) -> Iterator[CategoryIndex]:
        return iter(self.categories.values())

    def __len__(self) -> int:
        return len(self.categories)

    def __contains__(self, key) -> bool:
        return key in self.categories

    @property
    def entry_count(self) -> int:
        return sum(len(c.entries) for c in self.categories.values())


def is_placeholder(line: Optional[str]) -> bool:
    """Blank lines and "coming soon" / "new list" / "universal" markers are not real listings."""
    if not line or not line.strip():
        return True
    lowered = line.lower()
    return any(marker in lowered for marker in Config.PLACEHOLDER_MARKERS)


def split_line(line: str) -> List[str]:
    """
    Break one compatibility line into its model names.

    "7. Redmi 9 = Redmi 9A" -> ["Redmi 9", "Redmi 9A"]; a line without the
    group delimiter yields itself (trimmed) unless it is an announcement.
    """
    if is_placeholder(line):
        return []

    if Config.GROUP_DELIMITER not in line:
        single = line.strip()
        if not single or "coming" in single.lower():
            return []
        return [single]

    body = _RX_LIST_PREFIX.sub("", line.strip())
    models = []
    for piece in body.split(Config.GROUP_DELIMITER):
        piece = _RX_LIST_PREFIX.sub("", piece.strip())
        if not piece or is_placeholder(piece):
            continue
        models.append(piece)
    return models


def _group_candidates(models: List[str]) -> Tuple[Tuple[str, str], ...]:
    """(text, normalized) for each model of a line; the same pieces the entries are built from."""
    candidates = []
    for model in models:
        normalized = normalize(model)
        if normalized:
            candidates.append((model, normalized))
    return tuple(candidates)


def _index_brand(brand_name: str, lines: List[str]) -> List[ModelEntry]:
    entries = []
    for line in lines:
        models = split_line(line)
        if not models:
            continue
        group_line = line if Config.GROUP_DELIMITER in line else line.strip()
        candidates = _group_candidates(models)
        for model in models:
            normalized = normalize(model)
            if not normalized:
                continue
            entries.append(ModelEntry(
                brand=brand_name,
                text=model,
                normalized=normalized,
                group_line=group_line,
                identifiers=tuple(extract_identifiers(normalized)),
                candidates=candidates,
            ))
    return entries


def build_index(catalog: Any, show_progress: bool = False) -> SearchIndex:
    """
    Flatten the category -> brand -> line hierarchy into a query-ready index.

    A malformed or missing catalog yields an empty index; this never raises.
    """
    sanitized = CatalogValidator(catalog).run_all_validations()
    categories = sanitized["categories"]

    built: Dict[str, CategoryIndex] = {}
    iterator = tqdm(categories, desc="Indexing categories", unit="category") if show_progress else categories

    for category in iterator:
        key = category_key(category["name"])
        if not key:
            logger.warning(f"Skipping category '{category['name']}': name yields an empty key")
            continue

        entries: List[ModelEntry] = []
        brands: List[BrandGroup] = []
        for brand in category["brands"]:
            brands.append(BrandGroup(name=brand["name"], lines=tuple(brand["models"])))
            entries.extend(_index_brand(brand["name"], brand["models"]))

        if key in built:
            logger.warning(f"Category key '{key}' reused by '{category['name']}', replacing '{built[key].name}'")
        built[key] = CategoryIndex(key=key, name=category["name"], entries=tuple(entries), brands=tuple(brands))
        logger.debug(f"Indexed '{category['name']}' as '{key}' with {len(entries)} entries")

    index = SearchIndex(categories=MappingProxyType(built))
    logger.info(f"✅ Search index built: {len(index)} categories, {index.entry_count} model entries")
    return index
