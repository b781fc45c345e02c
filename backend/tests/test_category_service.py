"""
Modern Blog API — Category Service Unit Tests
===============================================

What:  Tests for CategoryService permission and uniqueness handling.
How:   Mock DB sessions; the happy paths run against SQLite in
       test_api_categories.py.

What we test:
    ✅ Slug derivation from the name
    ✅ Non-admins are refused before the store is touched
    ✅ Duplicate name/slug → ConflictError("Category already exists"),
       from the pre-check and from a lost uniqueness race
    ✅ Deleting an unknown category raises NotFoundError
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from blog_api.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from blog_api.models.category import slugify
from blog_api.models.user import ROLE_ADMIN, ROLE_USER, User
from blog_api.schemas.category import CategoryCreate
from blog_api.services.category_service import CategoryService


def make_user(role: str) -> User:
    return User(id=uuid4(), username=f"{role}_1", email=f"{role}@example.com", role=role)


def precheck_result(found: bool):
    result = MagicMock()
    result.first.return_value = (uuid4(),) if found else None
    return result


class TestSlugify:

    def test_lowercases_and_hyphenates(self):
        assert slugify("Tech Notes") == "tech-notes"

    def test_each_space_becomes_a_hyphen(self):
        assert slugify("Web  Dev") == "web--dev"


class TestCreateCategory:

    def setup_method(self):
        self.service = CategoryService()
        self.admin = make_user(ROLE_ADMIN)

    @pytest.mark.asyncio
    async def test_non_admin_refused(self, mock_db_session):
        with pytest.raises(PermissionDeniedError, match="Admin access required"):
            await self.service.create_category(
                mock_db_session, make_user(ROLE_USER), CategoryCreate(name="Tech Notes")
            )

        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_existing_name_conflicts(self, mock_db_session):
        mock_db_session.execute = AsyncMock(return_value=precheck_result(found=True))

        with pytest.raises(ConflictError) as exc_info:
            await self.service.create_category(
                mock_db_session, self.admin, CategoryCreate(name="Tech Notes")
            )

        assert exc_info.value.message == "Category already exists"
        assert exc_info.value.context["slug"] == "tech-notes"
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_uniqueness_race_conflicts(self, mock_db_session):
        mock_db_session.execute = AsyncMock(return_value=precheck_result(found=False))
        mock_db_session.flush = AsyncMock(
            side_effect=IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
        )

        with pytest.raises(ConflictError, match="Category already exists"):
            await self.service.create_category(
                mock_db_session, self.admin, CategoryCreate(name="Tech Notes")
            )

    @pytest.mark.asyncio
    async def test_explicit_slug_used_for_precheck(self, mock_db_session):
        mock_db_session.execute = AsyncMock(return_value=precheck_result(found=True))

        with pytest.raises(ConflictError) as exc_info:
            await self.service.create_category(
                mock_db_session, self.admin, CategoryCreate(name="Tech Notes", slug="TECH")
            )

        assert exc_info.value.context["slug"] == "tech"


class TestDeleteCategory:

    def setup_method(self):
        self.service = CategoryService()

    @pytest.mark.asyncio
    async def test_non_admin_refused(self, mock_db_session):
        with pytest.raises(PermissionDeniedError):
            await self.service.delete_category(mock_db_session, make_user(ROLE_USER), uuid4())

        mock_db_session.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_category(self, mock_db_session):
        mock_db_session.get = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError, match="Category not found"):
            await self.service.delete_category(mock_db_session, make_user(ROLE_ADMIN), uuid4())

        mock_db_session.delete.assert_not_awaited()
