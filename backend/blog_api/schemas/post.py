"""
Modern Blog API — Post & Comment Schemas
==========================================

What:  Request bodies and response models for /api/posts.
How:   Request models strip whitespace and forbid unknown fields, so a body
       carrying e.g. "author" or "comments" is rejected before it reaches
       PostService. Titles are HTML-escaped after validation.

Validation rules:
    title    ≥ 3 chars (after trim), HTML-escaped, ≤ 255 chars once escaped
    content  ≥ 10 chars (after trim)
    excerpt  ≤ 200 chars, optional
    categories / tags  lists, optional
Update uses the same rules with every field optional.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from blog_api.schemas.validators import escape_html

TITLE_MAX_LENGTH = 255

_REQUEST_CONFIG = ConfigDict(extra="forbid", str_strip_whitespace=True)


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class PostCreate(BaseModel):
    model_config = _REQUEST_CONFIG

    title: str = Field(min_length=3, max_length=TITLE_MAX_LENGTH)
    content: str = Field(min_length=10)
    excerpt: Optional[str] = Field(default=None, max_length=200)
    categories: List[uuid.UUID] = Field(default_factory=list, description="Category ids")
    tags: List[str] = Field(default_factory=list)
    is_published: bool = Field(default=True)
    featured_image: Optional[str] = Field(default=None, max_length=500)

    @field_validator("title")
    @classmethod
    def escape_title(cls, v: str) -> str:
        return escape_html(v, TITLE_MAX_LENGTH)


class PostUpdate(BaseModel):
    """Partial update; only fields present in the body are applied."""

    model_config = _REQUEST_CONFIG

    title: Optional[str] = Field(default=None, min_length=3, max_length=TITLE_MAX_LENGTH)
    content: Optional[str] = Field(default=None, min_length=10)
    excerpt: Optional[str] = Field(default=None, max_length=200)
    categories: Optional[List[uuid.UUID]] = None
    tags: Optional[List[str]] = None
    is_published: Optional[bool] = None
    featured_image: Optional[str] = Field(default=None, max_length=500)

    @field_validator("title")
    @classmethod
    def escape_title(cls, v: Optional[str]) -> Optional[str]:
        return escape_html(v, TITLE_MAX_LENGTH) if v is not None else v

    @field_validator("title", "content", "categories", "tags", "is_published")
    @classmethod
    def reject_null(cls, v):
        # excerpt and featured_image may be cleared with null; these may not
        if v is None:
            raise ValueError("may not be null")
        return v


class CommentCreate(BaseModel):
    model_config = _REQUEST_CONFIG

    author: str = Field(min_length=2, max_length=100, description="Commenter display name")
    content: str = Field(min_length=3)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class AuthorSummary(BaseModel):
    """Populated `author` reference: only the public fields."""
    id: uuid.UUID
    username: str

    model_config = {"from_attributes": True}


class CategorySummary(BaseModel):
    """Populated `categories` entry."""
    id: uuid.UUID
    name: str
    slug: str

    model_config = {"from_attributes": True}


class CommentResponse(BaseModel):
    id: uuid.UUID
    author: str
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class PostResponse(BaseModel):
    id: uuid.UUID
    title: str
    content: str
    excerpt: Optional[str] = None
    author: AuthorSummary
    categories: List[CategorySummary]
    tags: List[str]
    comments: List[CommentResponse]
    featured_image: Optional[str] = None
    is_published: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class Pagination(BaseModel):
    current: int = Field(description="Current page (1-based)")
    pages: int = Field(description="ceil(total / limit)")
    total: int = Field(description="Number of posts matching the filters")


class PostListResponse(BaseModel):
    posts: List[PostResponse]
    pagination: Pagination
