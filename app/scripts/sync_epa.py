"""Run the EPA vehicles sync against the configured database.

    python -m scripts.sync_epa [--csv-url URL]
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from core.db import AsyncSessionLocal, create_tables, engine
from core.logging import setup_logging
from services.epa_sync import EpaSyncService
from services.exceptions import DatabaseQueryError, EpaSyncError

logger = logging.getLogger(__name__)


async def run_sync(csv_url: Optional[str] = None) -> dict:
    await create_tables()
    try:
        async with AsyncSessionLocal() as session:
            return await EpaSyncService(session, csv_url=csv_url).sync()
    finally:
        await engine.dispose()


def main(argv: Optional[List[str]] = None) -> int:
    setup_logging()
    parser = argparse.ArgumentParser(description="Download the EPA CSV and upsert it into the vehicles table.")
    parser.add_argument("--csv-url", default=None, help="Override EPA_CSV_URL")
    args = parser.parse_args(argv)

    try:
        result = asyncio.run(run_sync(args.csv_url))
    except (EpaSyncError, DatabaseQueryError) as e:
        logger.error(f"EPA sync failed: {e}")
        return 1

    logger.info(f"EPA sync finished: {result['total']} vehicles")
    return 0


if __name__ == "__main__":
    sys.exit(main())
