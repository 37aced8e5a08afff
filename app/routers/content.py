from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth.auth_bearer import JWTBearer
from core.db import get_db
from exceptions import ValidationError
from schemas.content import ContentIn, ContentOut, SectionMove, SectionOrder
from services.content_service import ContentService

router = APIRouter(prefix="/api/content", tags=["content"])


@router.get("", response_model=List[ContentOut])
async def get_all_content(db: AsyncSession = Depends(get_db)):
    return await ContentService(db).get_all()


@router.get("/sections/{page}", response_model=SectionOrder)
async def get_section_order(page: str, db: AsyncSession = Depends(get_db)):
    order = await ContentService(db).get_section_order(page)
    return {"page": page, "order": order}


@router.post("/sections/{page}/move", response_model=SectionOrder, dependencies=[Depends(JWTBearer(require_admin=True))])
async def move_section(page: str, move: SectionMove, db: AsyncSession = Depends(get_db)):
    """Drag-and-drop reorder: move `active_id` into the slot held by `over_id`."""
    try:
        order = await ContentService(db).move_section(page, move.active_id, move.over_id)
    except ValueError as e:
        raise ValidationError(str(e), "active_id")
    return {"page": page, "order": order}


@router.get("/{key}", response_model=ContentOut)
async def get_content(key: str, db: AsyncSession = Depends(get_db)):
    return await ContentService(db).get(key)


@router.post("/{key}", response_model=ContentOut, dependencies=[Depends(JWTBearer(require_admin=True))])
async def update_content(key: str, body: ContentIn, db: AsyncSession = Depends(get_db)):
    return await ContentService(db).upsert(key, body.content)
