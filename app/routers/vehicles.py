import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from auth.auth_bearer import JWTBearer
from core.db import get_db
from core.environment import get_vehicle_source
from exceptions import ValidationError
from schemas.vehicle import ModelOption, SyncResult, VehicleIn, VehicleOut, VehiclePage
from services.epa_sync import EpaSyncService
from services.exceptions import EpaSyncError
from services.vehicle_catalog import VehicleCatalog
from services.vehicle_repository import VehicleRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vehicles", tags=["vehicles"])
admin_only = [Depends(JWTBearer(require_admin=True))]


def get_vehicle_catalog(request: Request) -> VehicleCatalog:
    return request.app.state.vehicle_catalog


def _use_database() -> bool:
    return get_vehicle_source() == "database"


@router.get("/years", response_model=List[int])
async def list_years(
    catalog: VehicleCatalog = Depends(get_vehicle_catalog),
    db: AsyncSession = Depends(get_db),
):
    if _use_database():
        return await VehicleRepository(db).list_years()
    return catalog.list_years()


@router.get("/makes/{year}", response_model=List[str])
async def list_makes(
    year: int,
    catalog: VehicleCatalog = Depends(get_vehicle_catalog),
    db: AsyncSession = Depends(get_db),
):
    if _use_database():
        return await VehicleRepository(db).list_makes(year)
    return catalog.list_makes(year)


@router.get("/models/{year}/{make}", response_model=List[ModelOption])
async def list_models(
    year: int,
    make: str,
    catalog: VehicleCatalog = Depends(get_vehicle_catalog),
    db: AsyncSession = Depends(get_db),
):
    if _use_database():
        return await VehicleRepository(db).list_models(year, make)
    return catalog.list_models(year, make)


@router.post("/sync", response_model=SyncResult, dependencies=admin_only)
async def sync_epa_data(db: AsyncSession = Depends(get_db)):
    """Download the EPA CSV and upsert every vehicle into the vehicles table."""
    logger.info("Starting EPA data sync")
    return await EpaSyncService(db).sync()


@router.get("/admin", response_model=VehiclePage, dependencies=admin_only)
async def list_vehicles(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    sort: str = Query("year"),
    direction: Literal["asc", "desc"] = Query("desc"),
    make: Optional[str] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await VehicleRepository(db).list_vehicles(
            page=page,
            page_size=page_size,
            sort=sort,
            direction=direction,
            make=make,
            search=search,
        )
    except ValueError as e:
        raise ValidationError(str(e), "sort")


@router.post("/admin", response_model=VehicleOut, dependencies=admin_only)
async def save_vehicle(vehicle: VehicleIn, db: AsyncSession = Depends(get_db)):
    return await VehicleRepository(db).save_vehicle(vehicle.model_dump(exclude_none=True))


@router.delete("/admin/{vehicle_id}", dependencies=admin_only)
async def delete_vehicle(vehicle_id: int, db: AsyncSession = Depends(get_db)):
    await VehicleRepository(db).delete_vehicle(vehicle_id)
    return {"deleted": vehicle_id}


@router.post("/admin/import", response_model=SyncResult, dependencies=admin_only)
async def import_vehicles(file: UploadFile = File(...), db: AsyncSession = Depends(get_db)):
    """Upsert vehicles from an uploaded EPA-format CSV."""
    raw = await file.read()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("CSV must be UTF-8 encoded", "file")

    logger.info(f"Importing vehicles from upload {file.filename}")
    try:
        return await EpaSyncService(db).import_text(text)
    except EpaSyncError as e:
        raise ValidationError(str(e), "file")
