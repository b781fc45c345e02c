"""
Modern Blog API — /api/auth Endpoint Tests
============================================

What we test:
    ✅ Register returns a working token and a "user" role
    ✅ Duplicate username/email, bad email, extra fields → 400
    ✅ Login with right and wrong credentials
    ✅ /me with missing, invalid and valid tokens
    ✅ Admin bootstrap creates or promotes the configured account
"""

import pytest
from sqlalchemy import select

from blog_api.models.user import ROLE_ADMIN, User
from blog_api.services.auth_service import auth_service

TEST_PASSWORD = "secret123"

REGISTRATION = {"username": "carol", "email": "carol@example.com", "password": "hunter22"}


class TestRegister:

    @pytest.mark.asyncio
    async def test_register(self, test_client):
        response = await test_client.post("/api/auth/register", json=REGISTRATION)

        assert response.status_code == 201
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["username"] == "carol"
        assert body["user"]["role"] == "user"
        assert "password_hash" not in body["user"]

        me = await test_client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"}
        )
        assert me.json()["username"] == "carol"

    @pytest.mark.asyncio
    async def test_duplicate_username(self, test_client):
        await test_client.post("/api/auth/register", json=REGISTRATION)

        response = await test_client.post(
            "/api/auth/register", json={**REGISTRATION, "email": "other@example.com"}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "User already exists"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, test_client):
        await test_client.post("/api/auth/register", json=REGISTRATION)

        response = await test_client.post(
            "/api/auth/register", json={**REGISTRATION, "username": "carol2"}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"email": "not-an-email"},
            {"username": "ab"},
            {"username": "bad name!"},
            {"password": "123"},
            {"role": "admin"},
        ],
    )
    async def test_invalid_registration(self, test_client, overrides):
        response = await test_client.post(
            "/api/auth/register", json={**REGISTRATION, **overrides}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"


class TestLogin:

    @pytest.mark.asyncio
    async def test_login(self, test_client, author):
        response = await test_client.post(
            "/api/auth/login", json={"username": "alice", "password": TEST_PASSWORD}
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == str(author.user.id)

    @pytest.mark.asyncio
    async def test_wrong_password(self, test_client, author):
        response = await test_client.post(
            "/api/auth/login", json={"username": "alice", "password": "wrong-password"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_unknown_user(self, test_client):
        response = await test_client.post(
            "/api/auth/login", json={"username": "nobody", "password": "whatever"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"


class TestMe:

    @pytest.mark.asyncio
    async def test_me(self, test_client, admin):
        response = await test_client.get("/api/auth/me", headers=admin.headers)

        assert response.status_code == 200
        assert response.json()["role"] == "admin"

    @pytest.mark.asyncio
    async def test_missing_token(self, test_client):
        response = await test_client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["message"] == "Authentication required"

    @pytest.mark.asyncio
    async def test_invalid_token(self, test_client):
        response = await test_client.get(
            "/api/auth/me", headers={"Authorization": "Bearer garbage"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"


class TestEnsureAdmin:

    @pytest.mark.asyncio
    async def test_creates_admin(self, database):
        async with database.session() as session:
            await auth_service.ensure_admin(
                session, username="boss", email="boss@example.com", password="secret123"
            )

        async with database.session_factory() as session:
            user = (await session.execute(select(User).where(User.username == "boss"))).scalar_one()
        assert user.role == ROLE_ADMIN

    @pytest.mark.asyncio
    async def test_promotes_existing_user(self, database, author):
        async with database.session() as session:
            await auth_service.ensure_admin(
                session, username="alice", email="ignored@example.com", password="unused"
            )

        async with database.session_factory() as session:
            user = await session.get(User, author.user.id)
        assert user.role == ROLE_ADMIN
        assert user.email == "alice@example.com"
