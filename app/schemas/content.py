from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ContentIn(BaseModel):
    content: str


class ContentOut(BaseModel):
    key: str
    content: str
    updated_at: Optional[datetime] = None


class SectionMove(BaseModel):
    active_id: str = Field(..., min_length=1)
    over_id: str = Field(..., min_length=1)


class SectionOrder(BaseModel):
    page: str
    order: List[str]
