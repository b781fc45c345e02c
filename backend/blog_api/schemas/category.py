"""Category request/response schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from blog_api.schemas.validators import escape_html

NAME_MAX_LENGTH = 100


class CategoryCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str = Field(min_length=2, max_length=NAME_MAX_LENGTH)
    description: Optional[str] = Field(default=None, max_length=500)
    slug: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=120,
        description="Derived from name when omitted",
    )

    @field_validator("name")
    @classmethod
    def escape_name(cls, v: str) -> str:
        return escape_html(v, NAME_MAX_LENGTH)

    @field_validator("slug")
    @classmethod
    def lowercase_slug(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v is not None else v


class CategoryResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    slug: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
