"""
Modern Blog API — Post Service
================================

What:  Business logic for posts and their comments.
How:   Stateless methods taking the request's AsyncSession. Every post that
       leaves this module is loaded through `_populated_query()`, which eagerly
       loads author, categories and comments (the models forbid lazy loads).
Who:   Called by routes/posts.py.

Listing (GET /api/posts):
    1. Base filter: is_published = true
    2. search   → every whitespace-separated term is matched case-insensitively
                  against title, content and excerpt; a post matches if any
                  term does. Terms are plain substrings (ILIKE %term%),
                  not words: "art" also matches "start"
    3. category → slug resolved to a category; posts linked to it. An unknown
                  slug leaves the filter off.
    4. ORDER BY created_at DESC, OFFSET (page-1)*limit, LIMIT limit
    5. COUNT(*) with the same filters → pagination {current, pages, total}

Mutations:
    update/delete load the post (404 first), then consult the authorization
    policy (403), then write. The author column is never written after insert.
    Comments are inserted as new rows; existing comments are never modified.
"""

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blog_api.exceptions import BlogError, DatabaseError, NotFoundError, ValidationError
from blog_api.models.category import Category
from blog_api.models.post import Comment, Post
from blog_api.models.user import User
from blog_api.schemas.common import MessageResponse
from blog_api.schemas.post import (
    CommentCreate,
    CommentResponse,
    Pagination,
    PostCreate,
    PostListResponse,
    PostResponse,
    PostUpdate,
)
from blog_api.services.category_service import category_service
from blog_api.services.policy import policy

logger = logging.getLogger(__name__)


def _like_pattern(term: str) -> str:
    """Wrap a search term for ILIKE, escaping the LIKE wildcards it contains."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _search_clause(search: str):
    terms = search.split()
    if not terms:
        return None
    matches = []
    for term in terms:
        pattern = _like_pattern(term)
        matches.extend(
            [
                Post.title.ilike(pattern, escape="\\"),
                Post.content.ilike(pattern, escape="\\"),
                Post.excerpt.ilike(pattern, escape="\\"),
            ]
        )
    return or_(*matches)


class PostService:
    """
    Error Handling Strategy:
        Application exceptions propagate unchanged. SQLAlchemy errors are
        logged with detail and re-raised as DatabaseError (generic 500).
    """

    @staticmethod
    def _populated_query() -> Select:
        return select(Post).options(
            selectinload(Post.author),
            selectinload(Post.categories),
            selectinload(Post.comments),
        )

    async def _load_post(self, db: AsyncSession, post_id: uuid.UUID) -> Post:
        """
        Fetch one fully populated post or raise NotFoundError.

        populate_existing refreshes an instance already in the session (e.g.
        one just flushed) so its relationships reflect the database.
        """
        result = await db.execute(
            self._populated_query()
            .where(Post.id == post_id)
            .execution_options(populate_existing=True)
        )
        post = result.scalar_one_or_none()
        if post is None:
            raise NotFoundError(resource="post", resource_id=str(post_id))
        return post

    async def _resolve_categories(
        self, db: AsyncSession, category_ids: List[uuid.UUID]
    ) -> List[Category]:
        """Load categories by id; any unknown id is a 400 on the `categories` field."""
        unique_ids = list(dict.fromkeys(category_ids))
        if not unique_ids:
            return []
        result = await db.execute(select(Category).where(Category.id.in_(unique_ids)))
        categories = list(result.scalars().all())
        found = {c.id for c in categories}
        missing = [str(cid) for cid in unique_ids if cid not in found]
        if missing:
            raise ValidationError(
                message=f"Unknown category id(s): {', '.join(missing)}",
                field="categories",
                context={"missing": missing},
            )
        return categories

    # ── Queries ───────────────────────────────────────────────────────────

    async def list_posts(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        category: Optional[str] = None,
    ) -> PostListResponse:
        """
        One page of published posts plus pagination metadata.

        Args:
            page:     1-based page number (validated ≥ 1 by the route)
            limit:    page size (validated 1-50 by the route)
            search:   free text, already trimmed
            category: category slug, already trimmed
        """
        try:
            filters = [Post.is_published.is_(True)]

            if search:
                clause = _search_clause(search)
                if clause is not None:
                    filters.append(clause)

            if category:
                category_doc = await category_service.get_by_slug(db, category)
                if category_doc is not None:
                    filters.append(Post.categories.any(Category.id == category_doc.id))
                else:
                    logger.debug("Unknown category slug '%s'; filter not applied", category)

            query = (
                self._populated_query()
                .where(*filters)
                .order_by(Post.created_at.desc(), Post.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            result = await db.execute(query)
            posts = list(result.scalars().all())

            count_result = await db.execute(
                select(func.count()).select_from(Post).where(*filters)
            )
            total = count_result.scalar() or 0

            return PostListResponse(
                posts=[PostResponse.model_validate(p) for p in posts],
                pagination=Pagination(
                    current=page,
                    pages=math.ceil(total / limit),
                    total=total,
                ),
            )

        except BlogError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error listing posts: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve posts. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get_post(self, db: AsyncSession, post_id: uuid.UUID) -> PostResponse:
        try:
            return PostResponse.model_validate(await self._load_post(db, post_id))
        except BlogError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error fetching post %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the post. Please try again.",
                context={"post_id": str(post_id)},
            )

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create_post(
        self,
        db: AsyncSession,
        actor: User,
        data: PostCreate,
    ) -> PostResponse:
        """
        Insert a post authored by `actor` and return it populated.

        Raises:
            ValidationError: a category id does not exist (→ 400)
            DatabaseError: store failure (→ 500)
        """
        try:
            categories = await self._resolve_categories(db, data.categories)

            post = Post(
                title=data.title,
                content=data.content,
                excerpt=data.excerpt,
                author_id=actor.id,
                tags=list(data.tags),
                categories=categories,
                is_published=data.is_published,
                featured_image=data.featured_image,
            )
            db.add(post)
            await db.flush()
            logger.info("Post %s created by %s", post.id, actor.username)

            return PostResponse.model_validate(await self._load_post(db, post.id))

        except BlogError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error creating post: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the post. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def update_post(
        self,
        db: AsyncSession,
        actor: User,
        post_id: uuid.UUID,
        data: PostUpdate,
    ) -> PostResponse:
        """
        Apply the fields present in `data` (owner or admin only).

        Order of checks: 404 → 403 → 400 (unknown categories).
        """
        try:
            post = await self._load_post(db, post_id)
            policy.authorize(actor, "update", "post", post)

            updates = data.model_dump(exclude_unset=True)
            if "categories" in updates:
                post.categories = await self._resolve_categories(db, updates.pop("categories"))
            for field, value in updates.items():
                setattr(post, field, value)
            post.updated_at = datetime.now(timezone.utc)

            await db.flush()
            logger.info(
                "Post %s updated by %s (fields: %s)",
                post_id,
                actor.username,
                ", ".join(sorted(data.model_fields_set)) or "none",
            )

            return PostResponse.model_validate(await self._load_post(db, post_id))

        except BlogError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating post %s: %s", post_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the post. Please try again.",
                context={"post_id": str(post_id)},
            )

    async def delete_post(
        self,
        db: AsyncSession,
        actor: User,
        post_id: uuid.UUID,
    ) -> MessageResponse:
        """Delete a post and its comments (owner or admin only)."""
        try:
            post = await self._load_post(db, post_id)
            policy.authorize(actor, "delete", "post", post)

            await db.delete(post)
            await db.flush()
            logger.info("Post %s deleted by %s", post_id, actor.username)

            return MessageResponse(message="Post deleted successfully")

        except BlogError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting post %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Could not delete the post. Please try again.",
                context={"post_id": str(post_id)},
            )

    async def add_comment(
        self,
        db: AsyncSession,
        post_id: uuid.UUID,
        data: CommentCreate,
    ) -> CommentResponse:
        """Append a comment to a post and return the new comment."""
        try:
            exists = await db.execute(select(Post.id).where(Post.id == post_id))
            if exists.scalar_one_or_none() is None:
                raise NotFoundError(resource="post", resource_id=str(post_id))

            comment = Comment(post_id=post_id, author=data.author, content=data.content)
            db.add(comment)
            await db.flush()
            logger.info("Comment %s added to post %s", comment.id, post_id)

            return CommentResponse.model_validate(comment)

        except BlogError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error adding comment to %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Could not add the comment. Please try again.",
                context={"post_id": str(post_id)},
            )


post_service = PostService()
