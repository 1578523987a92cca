"""
Command-line entry point: build the compatibility index and query it.
"""

import argparse
import json
import sys
from partsmatch.catalog_loader import CatalogLoader
from partsmatch.config import Config
from partsmatch.indexer import build_index
from partsmatch.search import SearchEngine
from utils.logger import get_logger
from utils.custom_exception import CustomException

logger = get_logger(__name__)


def main(argv=None) -> int:
    # Parse CLI arguments
    parser = argparse.ArgumentParser(description="Universal parts compatibility lookup")
    parser.add_argument("--catalog", default=Config.CATALOG_PATH, help="Path to catalog JSON file")
    parser.add_argument("--part", help="Part category hint, e.g. 'screens'")
    parser.add_argument("--model", help="Device model to look up, e.g. 'Redmi Note 10S'")
    parser.add_argument("--list", action="store_true", help="List indexed categories and exit")
    args = parser.parse_args(argv)

    try:
        logger.info(f"🚀 Building index from {args.catalog}")
        catalog = CatalogLoader(args.catalog).read()
        index = build_index(catalog, show_progress=True)
        engine = SearchEngine(index, max_results=Config.MAX_RESULTS, exact_threshold=Config.EXACT_THRESHOLD)

        if args.list or not (args.part or args.model):
            print(json.dumps(
                [{"key": c.key, "name": c.name, "entries": len(c.entries)} for c in index],
                indent=2, ensure_ascii=False
            ))
            return 0

        response = engine.search(args.part, args.model)
        print(json.dumps(response.to_dict(), indent=2, ensure_ascii=False))
        return 0

    except CustomException as ce:
        logger.error(f"Lookup failed: {ce}")
        print(json.dumps({"error": str(ce)}), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
