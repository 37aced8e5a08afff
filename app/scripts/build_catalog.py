"""
Build the vehicle catalog artifact from an EPA fuel-economy CSV.

    python -m scripts.build_catalog --csv vehicles.csv
    python -m scripts.build_catalog --csv vehicles.csv --output ../data/vehicles.json --dedupe last
"""

import argparse
import logging
import sys
from typing import List, Optional

from core.logging import setup_logging
from services.catalog_builder import DedupePolicy, generate_catalog
from services.exceptions import InputNotFoundError, MalformedInputError

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate the vehicle catalog JSON from the EPA CSV.")
    parser.add_argument("--csv", required=True, help="Path to the EPA vehicles.csv download")
    parser.add_argument(
        "--output",
        action="append",
        help="Output path (repeatable). Defaults to the configured catalog locations.",
    )
    parser.add_argument(
        "--dedupe",
        choices=[policy.value for policy in DedupePolicy],
        default=DedupePolicy.LOWEST_MPG.value,
        help="Which configuration represents a year/make/model with several EPA rows",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    setup_logging()
    args = parse_args(argv)

    try:
        summary = generate_catalog(args.csv, args.output, DedupePolicy(args.dedupe))
    except (InputNotFoundError, MalformedInputError) as e:
        logger.error(f"Catalog build failed: {e}")
        return 1

    logger.info(f"Catalog build complete: {summary}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
