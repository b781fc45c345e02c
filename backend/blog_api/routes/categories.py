"""
Modern Blog API — Category Route Handlers
===========================================

What:  GET/POST /api/categories and DELETE /api/categories/{id}.
Auth:  Listing is public; create and delete require an admin token.
"""

import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.database import get_db_session
from blog_api.middleware.auth import get_current_user
from blog_api.models.user import User
from blog_api.schemas.category import CategoryCreate, CategoryResponse
from blog_api.schemas.common import ErrorResponse, MessageResponse
from blog_api.services.category_service import category_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/categories", tags=["Categories"])


@router.get(
    "",
    response_model=List[CategoryResponse],
    summary="List categories",
    description="All categories ordered alphabetically by name.",
)
async def list_categories(
    db: AsyncSession = Depends(get_db_session),
) -> List[CategoryResponse]:
    return await category_service.list_categories(db=db)


@router.post(
    "",
    status_code=201,
    response_model=CategoryResponse,
    responses={
        400: {"description": "Validation error or category already exists", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        403: {"description": "Admin access required", "model": ErrorResponse},
    },
    summary="Create a category",
    description="The slug is derived from the name (lowercased, spaces → hyphens) when omitted.",
)
async def create_category(
    body: CategoryCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CategoryResponse:
    return await category_service.create_category(db=db, actor=current_user, data=body)


@router.delete(
    "/{category_id}",
    response_model=MessageResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        403: {"description": "Admin access required", "model": ErrorResponse},
        404: {"description": "Category not found", "model": ErrorResponse},
    },
    summary="Delete a category",
    description="Removes the category from every post that references it, then deletes it.",
)
async def delete_category(
    category_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await category_service.delete_category(db=db, actor=current_user, category_id=category_id)
    return MessageResponse(message="Category deleted successfully")
