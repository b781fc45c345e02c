"""
Modern Blog API — Category Service
====================================

What:  List, create and delete categories; resolve slugs for the posts filter.
How:   Stateless methods taking the request's AsyncSession. Store failures are
       translated into the application exception hierarchy.

Uniqueness:
    A create is rejected with ConflictError("Category already exists") when
    either the name or the derived/supplied slug is taken. The pre-check gives
    the common case a clean answer; the unique constraints catch the race
    between two concurrent creates (IntegrityError on flush).

Deletion detaches the category from every post before removing it; posts
themselves are left untouched.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.exceptions import BlogError, ConflictError, DatabaseError, NotFoundError
from blog_api.models.category import Category, slugify
from blog_api.models.post import post_categories
from blog_api.models.user import User
from blog_api.schemas.category import CategoryCreate, CategoryResponse
from blog_api.services.policy import policy

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Category already exists"


class CategoryService:

    async def list_categories(self, db: AsyncSession) -> List[CategoryResponse]:
        """All categories, alphabetical by name."""
        try:
            result = await db.execute(select(Category).order_by(Category.name.asc()))
            return [CategoryResponse.model_validate(c) for c in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Database error listing categories: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve categories. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get_by_slug(self, db: AsyncSession, slug: str) -> Optional[Category]:
        result = await db.execute(select(Category).where(Category.slug == slug))
        return result.scalar_one_or_none()

    async def create_category(
        self,
        db: AsyncSession,
        actor: User,
        data: CategoryCreate,
    ) -> CategoryResponse:
        """
        Create a category (admin only).

        Raises:
            PermissionDeniedError: actor is not an admin (→ 403)
            ConflictError: name or slug already used (→ 400 "Category already exists")
            DatabaseError: any other store failure (→ 500)
        """
        policy.authorize(actor, "create", "category")

        slug = data.slug or slugify(data.name)

        try:
            existing = await db.execute(
                select(Category.id).where(or_(Category.name == data.name, Category.slug == slug))
            )
            if existing.first() is not None:
                raise ConflictError(
                    message=DUPLICATE_MESSAGE, context={"name": data.name, "slug": slug}
                )

            category = Category(name=data.name, description=data.description, slug=slug)
            db.add(category)
            await db.flush()

            logger.info("Category created: %s (slug=%s) by %s", category.name, slug, actor.username)
            return CategoryResponse.model_validate(category)

        except BlogError:
            raise
        except IntegrityError as e:
            logger.info("Category create lost a uniqueness race: %s", data.name)
            raise ConflictError(
                message=DUPLICATE_MESSAGE,
                context={"name": data.name, "slug": slug, "error": type(e).__name__},
            )
        except SQLAlchemyError as e:
            logger.error("Database error creating category: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the category. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def delete_category(
        self,
        db: AsyncSession,
        actor: User,
        category_id: uuid.UUID,
    ) -> None:
        """Detach the category from all posts, then delete it (admin only)."""
        policy.authorize(actor, "delete", "category")

        try:
            category = await db.get(Category, category_id)
            if category is None:
                raise NotFoundError(resource="category", resource_id=str(category_id))

            detached = await db.execute(
                delete(post_categories).where(post_categories.c.category_id == category_id)
            )
            await db.delete(category)
            await db.flush()

            logger.info(
                "Category %s deleted by %s; detached from %d post(s)",
                category.slug,
                actor.username,
                detached.rowcount or 0,
            )

        except BlogError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting category %s: %s", category_id, str(e))
            raise DatabaseError(
                message="Could not delete the category. Please try again.",
                context={"category_id": str(category_id)},
            )


category_service = CategoryService()
