import io
import logging
from typing import Any, Dict, List, Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from core.environment import get_epa_csv_url, get_epa_sync_batch_size
from core.prometheus_metrics import epa_sync_vehicles_total
from services.catalog_builder import DedupePolicy, dedupe_vehicles, load_vehicle_frame, project_frame
from services.exceptions import EpaSyncError, MalformedInputError
from services.vehicle_repository import VehicleRepository

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT = httpx.Timeout(120.0, connect=10.0)


def parse_vehicle_csv(text: str, dedupe: DedupePolicy = DedupePolicy.LOWEST_MPG) -> List[Dict[str, Any]]:
    """Projects CSV text exactly like the catalog builder does, one vehicle per key."""
    frame = load_vehicle_frame(io.StringIO(text))
    logger.info(f"Parsed {len(frame)} total vehicles")
    vehicles = list(dedupe_vehicles(project_frame(frame), dedupe).values())
    logger.info(f"Filtered to {len(vehicles)} vehicles (2010-2026)")
    return vehicles


class EpaSyncService:
    """Downloads the EPA vehicles CSV and upserts it into the vehicles table."""

    def __init__(
        self,
        db: AsyncSession,
        csv_url: Optional[str] = None,
        batch_size: Optional[int] = None,
        dedupe: DedupePolicy = DedupePolicy.LOWEST_MPG,
    ):
        self.repository = VehicleRepository(db)
        self.csv_url = csv_url or get_epa_csv_url()
        self.batch_size = batch_size if batch_size is not None else get_epa_sync_batch_size()
        self.dedupe = dedupe

    async def download_csv(self) -> str:
        logger.info(f"Downloading EPA CSV data from {self.csv_url}")
        try:
            async with httpx.AsyncClient(timeout=DOWNLOAD_TIMEOUT, follow_redirects=True) as client:
                response = await client.get(self.csv_url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise EpaSyncError(f"EPA CSV download failed: {e}") from e
        return response.text

    async def import_text(self, text: str) -> Dict[str, int]:
        try:
            vehicles = await run_in_threadpool(parse_vehicle_csv, text, self.dedupe)
        except MalformedInputError as e:
            raise EpaSyncError(str(e)) from e

        total = await self.repository.upsert_vehicles(vehicles, batch_size=self.batch_size)
        epa_sync_vehicles_total.inc(total)
        logger.info(f"EPA data sync complete: {total} vehicles")
        return {"total": total}

    async def sync(self) -> Dict[str, int]:
        text = await self.download_csv()
        return await self.import_text(text)
