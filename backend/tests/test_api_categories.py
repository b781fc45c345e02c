"""
Modern Blog API — /api/categories Endpoint Tests
==================================================

What we test:
    ✅ Admin creates a category; slug derived from the name
    ✅ Duplicate name → 400 "Category already exists"
    ✅ Non-admin → 403, anonymous → 401
    ✅ Listing is public and alphabetical
    ✅ Delete detaches the category from posts, which survive
"""

import uuid

import pytest


class TestCreateCategory:

    @pytest.mark.asyncio
    async def test_admin_creates(self, test_client, admin):
        response = await test_client.post(
            "/api/categories",
            json={"name": "Tech Notes", "description": "Things I learned"},
            headers=admin.headers,
        )

        assert response.status_code == 201
        category = response.json()
        assert category["name"] == "Tech Notes"
        assert category["slug"] == "tech-notes"
        assert category["description"] == "Things I learned"

    @pytest.mark.asyncio
    async def test_duplicate_name(self, test_client, admin):
        await test_client.post("/api/categories", json={"name": "Tech Notes"}, headers=admin.headers)

        response = await test_client.post(
            "/api/categories", json={"name": "Tech Notes"}, headers=admin.headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Category already exists"
        listing = (await test_client.get("/api/categories")).json()
        assert len(listing) == 1

    @pytest.mark.asyncio
    async def test_duplicate_slug(self, test_client, admin):
        await test_client.post("/api/categories", json={"name": "Tech Notes"}, headers=admin.headers)

        response = await test_client.post(
            "/api/categories",
            json={"name": "Technical notes", "slug": "Tech-Notes"},
            headers=admin.headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Category already exists"

    @pytest.mark.asyncio
    async def test_non_admin_forbidden(self, test_client, author):
        response = await test_client.post(
            "/api/categories", json={"name": "Tech Notes"}, headers=author.headers
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Admin access required"
        assert (await test_client.get("/api/categories")).json() == []

    @pytest.mark.asyncio
    async def test_anonymous_unauthorized(self, test_client):
        response = await test_client.post("/api/categories", json={"name": "Tech Notes"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_short_name_rejected(self, test_client, admin):
        response = await test_client.post(
            "/api/categories", json={"name": "T"}, headers=admin.headers
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "name"

    @pytest.mark.asyncio
    async def test_name_too_long_once_escaped(self, test_client, admin):
        response = await test_client.post(
            "/api/categories", json={"name": "<" * 100}, headers=admin.headers
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "name"
        assert (await test_client.get("/api/categories")).json() == []


class TestListCategories:

    @pytest.mark.asyncio
    async def test_alphabetical(self, test_client, admin):
        for name in ("Travel", "Cooking", "Music"):
            await test_client.post("/api/categories", json={"name": name}, headers=admin.headers)

        response = await test_client.get("/api/categories")

        assert response.status_code == 200
        assert [c["name"] for c in response.json()] == ["Cooking", "Music", "Travel"]


class TestDeleteCategory:

    @pytest.mark.asyncio
    async def test_delete_detaches_from_posts(self, test_client, admin, author):
        category = (
            await test_client.post("/api/categories", json={"name": "Tech"}, headers=admin.headers)
        ).json()
        post = (
            await test_client.post(
                "/api/posts",
                json={
                    "title": "Categorised post",
                    "content": "This post belongs to the Tech category.",
                    "categories": [category["id"]],
                },
                headers=author.headers,
            )
        ).json()
        assert len(post["categories"]) == 1

        response = await test_client.delete(
            f"/api/categories/{category['id']}", headers=admin.headers
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Category deleted successfully"}
        surviving = (await test_client.get(f"/api/posts/{post['id']}")).json()
        assert surviving["categories"] == []

    @pytest.mark.asyncio
    async def test_non_admin_forbidden(self, test_client, admin, author):
        category = (
            await test_client.post("/api/categories", json={"name": "Tech"}, headers=admin.headers)
        ).json()

        response = await test_client.delete(
            f"/api/categories/{category['id']}", headers=author.headers
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_category(self, test_client, admin):
        response = await test_client.delete(
            f"/api/categories/{uuid.uuid4()}", headers=admin.headers
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Category not found"
