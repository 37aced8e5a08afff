import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, func, or_, delete
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.prometheus_metrics import vehicle_lookups_total
from models.vehicle import Vehicle, OPTIONAL_FIELDS
from services.catalog_builder import model_sort_key
from services.exceptions import DatabaseQueryError, VehicleNotFoundError

logger = logging.getLogger(__name__)

UPSERT_COLUMNS = ("mpg_combined",) + OPTIONAL_FIELDS
SORTABLE_COLUMNS = ("year", "make", "model", "mpg_combined", "fuel_type")
SECONDARY_SORTS = (("make", "asc"), ("year", "desc"), ("model", "asc"))


def _insert_for(db: AsyncSession):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise DatabaseQueryError(f"Upsert not supported for dialect {dialect}")


def _row(vehicle: Dict[str, Any]) -> Dict[str, Any]:
    row = {
        "year": vehicle["year"],
        "make": vehicle["make"],
        "model": vehicle["model"],
        "mpg_combined": vehicle["mpg_combined"],
    }
    for field in OPTIONAL_FIELDS:
        row[field] = vehicle.get(field)
    return row


class VehicleRepository:
    """
    Vehicle rows in the relational store.

    Serves the same three lookups as the JSON catalog (same ordering, empty lists
    for unknown keys) plus the admin listing and the bulk upsert used by the EPA sync.
    Rows are keyed by the unique (year, make, model) constraint.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_years(self) -> List[int]:
        vehicle_lookups_total.labels(operation="years", source="database").inc()
        try:
            result = await self.db.execute(
                select(Vehicle.year).distinct().order_by(Vehicle.year.desc())
            )
            return [int(year) for year in result.scalars().all()]
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))

    async def list_makes(self, year: int) -> List[str]:
        vehicle_lookups_total.labels(operation="makes", source="database").inc()
        try:
            result = await self.db.execute(
                select(Vehicle.make).distinct().where(Vehicle.year == year)
            )
            return sorted(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))

    async def list_models(self, year: int, make: str) -> List[Dict[str, Any]]:
        vehicle_lookups_total.labels(operation="models", source="database").inc()
        try:
            result = await self.db.execute(
                select(Vehicle).where(Vehicle.year == year, Vehicle.make == make)
            )
            vehicles = [v.to_dict() for v in result.scalars().all()]
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))
        return sorted(vehicles, key=lambda v: model_sort_key(v["model"]))

    async def upsert_vehicles(self, vehicles: Iterable[Dict[str, Any]], batch_size: int = 1000) -> int:
        """Insert-or-update on (year, make, model), committing once per batch. Never deletes."""
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        rows = [_row(v) for v in vehicles]
        if not rows:
            return 0

        insert = _insert_for(self.db)
        batches = (len(rows) + batch_size - 1) // batch_size
        try:
            for index in range(batches):
                batch = rows[index * batch_size:(index + 1) * batch_size]
                stmt = insert(Vehicle).values(batch)
                update_set = {col: stmt.excluded[col] for col in UPSERT_COLUMNS}
                update_set["updated_at"] = func.now()
                stmt = stmt.on_conflict_do_update(
                    index_elements=["year", "make", "model"],
                    set_=update_set,
                )
                await self.db.execute(stmt)
                await self.db.commit()
                logger.info(f"Processed batch {index + 1}/{batches}")
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseQueryError(str(e))

        return len(rows)

    async def save_vehicle(self, vehicle: Dict[str, Any]) -> Dict[str, Any]:
        await self.upsert_vehicles([vehicle])
        result = await self.db.execute(
            select(Vehicle).where(
                Vehicle.year == vehicle["year"],
                Vehicle.make == vehicle["make"],
                Vehicle.model == vehicle["model"],
            )
        )
        saved = result.scalar_one()
        return {"id": saved.id, **saved.to_dict()}

    async def delete_vehicle(self, vehicle_id: int) -> None:
        try:
            result = await self.db.execute(delete(Vehicle).where(Vehicle.id == vehicle_id))
            if result.rowcount == 0:
                await self.db.rollback()
                raise VehicleNotFoundError(f"Vehicle {vehicle_id} not found.")
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseQueryError(str(e))

    async def list_vehicles(
        self,
        page: int = 1,
        page_size: int = 50,
        sort: str = "year",
        direction: str = "desc",
        make: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Paginated admin listing; ties fall back to make ASC, year DESC, model ASC."""
        if sort not in SORTABLE_COLUMNS:
            raise ValueError(f"Cannot sort by {sort}")

        filters = []
        if make:
            filters.append(Vehicle.make == make)
        if search:
            pattern = f"%{search.strip()}%"
            filters.append(or_(Vehicle.make.ilike(pattern), Vehicle.model.ilike(pattern)))

        ordering = [_ordered(sort, direction)]
        ordering += [_ordered(col, dir_) for col, dir_ in SECONDARY_SORTS if col != sort]

        try:
            total = (
                await self.db.execute(select(func.count(Vehicle.id)).where(*filters))
            ).scalar()
            result = await self.db.execute(
                select(Vehicle)
                .where(*filters)
                .order_by(*ordering)
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            items = [{"id": v.id, **v.to_dict()} for v in result.scalars().all()]
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))

        return {"items": items, "total": total or 0, "page": page, "page_size": page_size}


def _ordered(column: str, direction: str):
    col = getattr(Vehicle, column)
    return col.asc() if direction == "asc" else col.desc()
