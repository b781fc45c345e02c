"""
Modern Blog API — Category Model
==================================

What:  ORM model for the `categories` table.
How:   `name` and `slug` carry separate unique constraints; the service layer
       derives the slug from the name when the client omits it, so the two
       constraints fail together on a duplicate name.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from blog_api.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def slugify(name: str) -> str:
    """Lowercase the name and replace each space with a hyphen."""
    return name.lower().replace(" ", "-")


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    # Indexed: the posts list resolves ?category=<slug> on every filtered request
    slug: Mapped[str] = mapped_column(String(120), nullable=False, unique=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        return f"<Category(name='{self.name}', slug='{self.slug}')>"
