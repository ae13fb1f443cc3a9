"""End-to-end tests for the RPC routes and their success/error envelopes."""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from coursecart.cache import CacheClient
from coursecart.db.connection import commit, get_db, rollback
from coursecart.main import app
from coursecart.services.dependencies import get_cache_client, get_user_service


@pytest_asyncio.fixture
async def client(
    session: AsyncSession, cache: CacheClient
) -> AsyncIterator[httpx.AsyncClient]:
    async def _override_db() -> AsyncIterator[AsyncSession]:
        try:
            yield session
            await commit(session)
        except Exception:
            await rollback(session)
            raise

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[get_cache_client] = lambda: cache
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    try:
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
            yield http
    finally:
        app.dependency_overrides.clear()


async def _call(client: httpx.AsyncClient, method: str, payload: dict) -> httpx.Response:
    return await client.post(f"/rpc/{method}", json=payload)


@pytest.mark.asyncio
async def test_toggle_cart_item_twice(client: httpx.AsyncClient) -> None:
    request = {"cartId": "cart1", "userId": "user1", "courseId": "courseA"}

    first = await _call(client, "ToggleCartItem", request)
    second = await _call(client, "ToggleCartItem", request)
    listing = await _call(client, "ListUserCart", {"userId": "user1"})

    assert first.status_code == 200
    assert first.json()["success"]["item"]["courseId"] == "courseA"
    assert second.json() == {"success": {"item": None}}
    cart = listing.json()["success"]["cart"]
    assert cart["id"] == "cart1"
    assert cart["items"] == []
    assert listing.json()["success"]["pagination"] == {"totalItems": 0, "totalPages": 0}


@pytest.mark.asyncio
async def test_add_remove_and_list_wishlist(client: httpx.AsyncClient) -> None:
    for course in ("c-1", "c-2", "c-3"):
        response = await _call(
            client, "AddToWishlist", {"userId": "user1", "courseId": course}
        )
        assert response.status_code == 200
    wishlist_id = response.json()["success"]["item"]["id"]
    assert wishlist_id

    page = await _call(
        client,
        "ListUserWishlist",
        {"userId": "user1", "pagination": {"page": 1, "pageSize": 2}},
    )
    body = page.json()["success"]
    assert [item["courseId"] for item in body["wishlist"]["items"]] == ["c-3", "c-2"]
    assert body["wishlist"]["total"] == 3
    assert body["pagination"] == {"totalItems": 3, "totalPages": 2}

    removed = await _call(
        client,
        "RemoveFromWishlist",
        {"wishlistId": body["wishlist"]["id"], "courseId": "c-2"},
    )
    missing = await _call(
        client,
        "RemoveFromWishlist",
        {"wishlistId": body["wishlist"]["id"], "courseId": "c-2"},
    )
    assert removed.json() == {"success": {"removed": True}}
    assert missing.json() == {"success": {"removed": False}}


@pytest.mark.asyncio
async def test_list_cart_for_user_without_cart(client: httpx.AsyncClient) -> None:
    response = await _call(client, "ListUserCart", {"userId": "nobody"})

    assert response.status_code == 200
    assert response.json() == {
        "success": {"cart": None, "pagination": {"totalItems": 0, "totalPages": 0}}
    }


@pytest.mark.asyncio
async def test_cart_id_mismatch_is_a_validation_error(client: httpx.AsyncClient) -> None:
    await _call(client, "AddToCart", {"cartId": "cart1", "userId": "user1", "courseId": "a"})

    response = await _call(
        client, "AddToCart", {"cartId": "other", "userId": "user1", "courseId": "b"}
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION"


@pytest.mark.asyncio
async def test_malformed_request_yields_validation_envelope(
    client: httpx.AsyncClient,
) -> None:
    response = await client.post(
        "/rpc/AddToCart",
        json={"courseId": "a"},
        headers={"X-Request-ID": "req-42"},
    )

    assert response.status_code == 422
    assert response.headers["X-Request-ID"] == "req-42"
    error = response.json()["error"]
    assert error["code"] == "VALIDATION"
    assert error["details"]["fields"][0]["field"] == "userId"
    assert error["details"]["requestId"] == "req-42"
    assert "timestamp" in error["details"]


@pytest.mark.asyncio
async def test_page_size_above_maximum_is_rejected(client: httpx.AsyncClient) -> None:
    response = await _call(
        client,
        "ListUserCart",
        {"userId": "user1", "pagination": {"page": 1, "pageSize": 1000}},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_user_lifecycle(client: httpx.AsyncClient) -> None:
    created = await _call(
        client,
        "CreateUser",
        {"email": "Ada@Example.com", "firstName": "Ada", "lastName": "Lovelace"},
    )
    assert created.status_code == 200
    user = created.json()["success"]["user"]
    assert user["email"] == "ada@example.com"
    assert user["role"] == "student"
    assert user["status"] == "not-verified"

    duplicate = await _call(client, "CreateUser", {"email": "ada@example.com"})
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["code"] == "DUPLICATE"

    blocked = await _call(client, "BlockUser", {"id": user["id"]})
    assert blocked.json()["success"]["user"]["status"] == "blocked"

    promoted = await _call(
        client, "UpdateUserRole", {"id": user["id"], "role": "instructor"}
    )
    assert promoted.json()["success"]["user"]["instructorProfile"]["rating"] == 0.0

    profile = await _call(
        client,
        "UpdateUserProfile",
        {
            "id": user["id"],
            "city": "London",
            "socials": [{"platform": "github", "url": "https://github.com/ada"}],
        },
    )
    updated = profile.json()["success"]["user"]
    assert updated["firstName"] == "Ada"
    assert updated["profile"]["city"] == "London"
    assert updated["socials"] == [{"platform": "github", "url": "https://github.com/ada"}]

    by_email = await _call(client, "GetUserByEmail", {"email": "ada@example.com"})
    assert by_email.json()["success"]["user"]["id"] == user["id"]

    instructors = await _call(client, "ListInstructors", {"page": 1, "pageSize": 5})
    assert [u["id"] for u in instructors.json()["success"]["users"]] == [user["id"]]

    batch = await _call(client, "GetUsersByIds", {"ids": [user["id"], "unknown"]})
    assert len(batch.json()["success"]["users"]) == 1


@pytest.mark.asyncio
async def test_update_profile_without_changes_returns_user(
    client: httpx.AsyncClient,
) -> None:
    created = await _call(client, "CreateUser", {"email": "grace@example.com"})
    user_id = created.json()["success"]["user"]["id"]

    response = await _call(client, "UpdateUserProfile", {"id": user_id})

    assert response.status_code == 200
    assert response.json()["success"]["user"]["profile"] is None


@pytest.mark.asyncio
async def test_unknown_user_is_not_found(client: httpx.AsyncClient) -> None:
    response = await _call(client, "GetUser", {"id": "missing"})

    assert response.status_code == 404
    error = response.json()["error"]
    assert error["code"] == "NOT_FOUND"
    assert error["details"]["id"] == "missing"


@pytest.mark.asyncio
async def test_unexpected_failure_yields_internal_envelope(
    client: httpx.AsyncClient,
) -> None:
    class _BrokenService:
        async def get_user(self, user_id: str) -> None:
            raise RuntimeError("boom")

    app.dependency_overrides[get_user_service] = lambda: _BrokenService()

    response = await _call(client, "GetUser", {"id": "any"})

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "INTERNAL"


@pytest.mark.asyncio
async def test_health_reports_database_and_cache(
    client: httpx.AsyncClient, session: AsyncSession, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("coursecart.main.get_engine", lambda: session.bind)

    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "ok", "cache": "disabled"}
