import json
import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from models.content import PageContent
from services.exceptions import ContentNotFoundError, DatabaseQueryError

logger = logging.getLogger(__name__)

DEFAULT_SECTION_ORDERS: Dict[str, List[str]] = {
    "second": ["hero", "co2-stat", "what-you-can-do", "calculator", "why-now", "final-cta"],
}


def section_order_key(page: str) -> str:
    return f"{page}_section_order"


def move_item(items: Sequence[str], active_id: str, over_id: str) -> List[str]:
    """Moves `active_id` to the index currently held by `over_id`."""
    if active_id not in items:
        raise ValueError(f"Unknown section: {active_id}")
    if over_id not in items:
        raise ValueError(f"Unknown section: {over_id}")

    reordered = list(items)
    if active_id == over_id:
        return reordered
    new_index = reordered.index(over_id)
    reordered.remove(active_id)
    reordered.insert(new_index, active_id)
    return reordered


class ContentService:
    """Key/value page content with upsert semantics, plus per-page section order."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _find(self, key: str) -> Optional[PageContent]:
        try:
            result = await self.db.execute(select(PageContent).where(PageContent.key == key))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))

    async def get_all(self) -> List[dict]:
        try:
            result = await self.db.execute(select(PageContent).order_by(PageContent.key))
            return [item.to_dict() for item in result.scalars().all()]
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))

    async def get(self, key: str) -> dict:
        item = await self._find(key)
        if item is None:
            raise ContentNotFoundError(key)
        return item.to_dict()

    async def upsert(self, key: str, content: str) -> dict:
        item = await self._find(key)
        if item is None:
            item = PageContent(key=key, content=content)
            self.db.add(item)
        else:
            item.content = content
            item.updated_at = func.now()

        try:
            await self.db.commit()
            await self.db.refresh(item)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseQueryError(str(e))
        return item.to_dict()

    async def get_section_order(self, page: str, default: Optional[Sequence[str]] = None) -> List[str]:
        fallback = list(default if default is not None else DEFAULT_SECTION_ORDERS.get(page, []))
        item = await self._find(section_order_key(page))
        if item is None:
            return fallback

        try:
            order = json.loads(item.content)
        except ValueError:
            logger.warning(f"Failed to parse section order for page {page}")
            return fallback

        if not isinstance(order, list) or not all(isinstance(s, str) for s in order):
            logger.warning(f"Stored section order for page {page} is not a list of ids")
            return fallback
        return order

    async def move_section(
        self,
        page: str,
        active_id: str,
        over_id: str,
        default: Optional[Sequence[str]] = None,
    ) -> List[str]:
        current = await self.get_section_order(page, default)
        reordered = move_item(current, active_id, over_id)
        if reordered != current:
            await self.upsert(section_order_key(page), json.dumps(reordered))
            logger.info(f"Section order updated for page {page}")
        return reordered
