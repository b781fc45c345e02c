"""
Modern Blog API — Post & Comment Models
=========================================

What:  ORM models for `posts`, `comments` and the `post_categories` link table.
Who:   Used by PostService for every post operation and by Alembic.

Table Design:
    - posts.author_id: set once at creation; no code path updates it
    - posts.tags: JSON array, order preserved as submitted
    - comments: child rows ordered by created_at; inserted, never updated
    - post_categories: many-to-many link; rows go away with either side

Index on (is_published, created_at DESC):
    Serves the public listing query: published posts, newest first.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from blog_api.database import Base
from blog_api.models.category import Category
from blog_api.models.user import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


post_categories = Table(
    "post_categories",
    Base.metadata,
    Column("post_id", Uuid, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "category_id",
        Uuid,
        ForeignKey("categories.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Post(Base):
    """
    A blog article.

    Relationships are never lazy loaded (async sessions cannot); PostService
    always selects posts with explicit loader options.
    """

    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    featured_image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    author: Mapped[User] = relationship(lazy="raise")
    categories: Mapped[List[Category]] = relationship(
        secondary=post_categories,
        order_by=Category.name,
        lazy="raise",
    )
    comments: Mapped[List["Comment"]] = relationship(
        back_populates="post",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, title='{self.title[:30]}')>"


Index("idx_posts_published_created_at", Post.is_published, Post.created_at.desc())


class Comment(Base):
    """A reader comment. `author` is a free-text display name, not a User."""

    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    post: Mapped[Post] = relationship(back_populates="comments", lazy="raise")

    def __repr__(self) -> str:
        return f"<Comment(post_id={self.post_id}, author='{self.author}')>"
