from __future__ import annotations

from datetime import datetime

from sqlalchemy import Integer, String, Text, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base


class PageContent(Base):
    """Admin-editable text blocks and page settings, addressed by key."""
    __tablename__ = "page_content"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True
    )

    key: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True
    )  # hero_title, payment_title, second_section_order

    content: Mapped[str] = mapped_column(
        Text
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "content": self.content,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
