"""
Modern Blog API — Post Route Handlers
=======================================

What:  /api/posts CRUD plus comment append.
How:   Handlers stay thin: FastAPI validates path/query/body against the
       schemas (failures become 400 via the RequestValidationError handler),
       the auth dependency resolves the caller where required, and PostService
       does the rest.

Auth:
    GET  list/detail, POST comments   → public
    POST create                       → any authenticated user
    PUT / DELETE                      → author or admin (checked in the service)
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.database import get_db_session
from blog_api.middleware.auth import get_current_user
from blog_api.models.user import User
from blog_api.schemas.common import ErrorResponse, MessageResponse
from blog_api.schemas.post import (
    CommentCreate,
    CommentResponse,
    PostCreate,
    PostListResponse,
    PostResponse,
    PostUpdate,
)
from blog_api.services.post_service import post_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["Posts"])

_AUTH_ERRORS = {
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    403: {"description": "Not the author and not an admin", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=PostListResponse,
    responses={400: {"description": "Invalid query parameters", "model": ErrorResponse}},
    summary="List published posts",
    description=(
        "Published posts, newest first, with page/limit pagination, free-text "
        "search and category filtering by slug. Search terms are matched as "
        "case-insensitive substrings of title, content and excerpt (\"art\" "
        "also matches \"start\"); a post matches when any term does."
    ),
)
async def list_posts(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    limit: int = Query(default=10, ge=1, le=50, description="Posts per page (max 50)"),
    search: Optional[str] = Query(default=None, description="Whitespace-separated terms, substring match"),
    category: Optional[str] = Query(default=None, description="Category slug"),
    db: AsyncSession = Depends(get_db_session),
) -> PostListResponse:
    """
    Example:
        GET /api/posts?page=2&limit=5
        → {"posts": [...5 posts...], "pagination": {"current": 2, "pages": 3, "total": 12}}
    """
    return await post_service.list_posts(
        db=db,
        page=page,
        limit=limit,
        search=search.strip() if search else None,
        category=category.strip() if category else None,
    )


@router.get(
    "/{post_id}",
    response_model=PostResponse,
    responses={
        400: {"description": "Malformed post id", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
    },
    summary="Get a single post",
)
async def get_post(
    post_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.get_post(db=db, post_id=post_id)


@router.post(
    "",
    status_code=201,
    response_model=PostResponse,
    responses={
        400: {"description": "Validation error", "model": ErrorResponse},
        401: _AUTH_ERRORS[401],
    },
    summary="Create a post",
)
async def create_post(
    body: PostCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    """The caller becomes the post's author."""
    return await post_service.create_post(db=db, actor=current_user, data=body)


@router.put(
    "/{post_id}",
    response_model=PostResponse,
    responses={
        400: {"description": "Validation error", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
        **_AUTH_ERRORS,
    },
    summary="Update a post",
    description="Partial update. Only the author or an admin may update a post.",
)
async def update_post(
    post_id: uuid.UUID,
    body: PostUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.update_post(
        db=db, actor=current_user, post_id=post_id, data=body
    )


@router.delete(
    "/{post_id}",
    response_model=MessageResponse,
    responses={
        404: {"description": "Post not found", "model": ErrorResponse},
        **_AUTH_ERRORS,
    },
    summary="Delete a post",
)
async def delete_post(
    post_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await post_service.delete_post(db=db, actor=current_user, post_id=post_id)


@router.post(
    "/{post_id}/comments",
    status_code=201,
    response_model=CommentResponse,
    responses={
        400: {"description": "Validation error", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
    },
    summary="Add a comment to a post",
    description="Public endpoint. Returns the newly appended comment.",
)
async def add_comment(
    post_id: uuid.UUID,
    body: CommentCreate,
    db: AsyncSession = Depends(get_db_session),
) -> CommentResponse:
    return await post_service.add_comment(db=db, post_id=post_id, data=body)
