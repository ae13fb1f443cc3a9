"""Tests for the Redis cache coordinator and its key builders."""

from __future__ import annotations

import json
import logging

import pytest
from redis.exceptions import ResponseError

from coursecart.cache import (
    CacheClient,
    connect_redis,
    ids_key,
    instructors_key,
    invalidate_collection,
    invalidate_user,
    list_key,
    natural_key,
    owner_list_key,
    owner_list_pattern,
    point_key,
)
from tests.coursecart.conftest import InMemoryRedis, UnreachableRedis


class _RejectingRedis(InMemoryRedis):
    """Double whose writes fail with a server-side error."""

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        raise ResponseError("OOM command not allowed")


def test_key_builders() -> None:
    assert point_key("user", "u-1") == "user:u-1"
    assert natural_key("user", "ada@example.com") == "user:key:ada@example.com"
    assert list_key("user", limit=10, offset=20) == "user:list:limit10:offset20"
    assert instructors_key(limit=5, offset=0) == "user:instructors:limit5:offset0"
    assert owner_list_key("cart", "u-1", limit=10, offset=0) == (
        "cart:user:u-1:list:limit10:offset0"
    )
    assert owner_list_pattern("wishlist", "u-1") == "wishlist:user:u-1:list:*"


def test_ids_key_ignores_argument_order() -> None:
    assert ids_key("user", ["b", "a", "c"]) == ids_key("user", ["c", "b", "a"])
    assert ids_key("user", ["b", "a"]) == "user:ids:a,b"


@pytest.mark.asyncio
async def test_round_trip_honours_ttl(fake_redis: InMemoryRedis) -> None:
    cache = CacheClient(fake_redis, point_ttl=60, listing_ttl=30)

    await cache.set_json("demo", {"value": 42})
    await cache.set_json("page", [1, 2], ttl=cache.listing_ttl)

    assert json.loads(fake_redis._store["demo"]) == {"value": 42}
    assert fake_redis._ttl["demo"] == 60
    assert fake_redis._ttl["page"] == 30
    assert await cache.get_json("demo") == {"value": 42}

    await cache.delete("demo")
    assert await cache.get_json("demo") is None


@pytest.mark.asyncio
async def test_disabled_client_is_a_permanent_miss() -> None:
    cache = CacheClient(None)

    await cache.set_json("demo", {"value": 1})

    assert cache.enabled is False
    assert await cache.get_json("demo") is None
    await cache.delete("demo")
    await cache.delete_pattern("*")


@pytest.mark.asyncio
async def test_unreachable_redis_degrades_to_misses() -> None:
    cache = CacheClient(UnreachableRedis())

    await cache.set_json("demo", {"value": 1})

    assert await cache.get_json("demo") is None
    await cache.delete("demo")
    await cache.delete_pattern("demo:*")


@pytest.mark.asyncio
async def test_rejected_write_is_logged_and_dropped(
    caplog: pytest.LogCaptureFixture,
) -> None:
    cache = CacheClient(_RejectingRedis())

    with caplog.at_level(logging.WARNING, logger="coursecart.cache"):
        await cache.set_json("demo", {"value": 1})

    assert await cache.get_json("demo") is None
    assert any("demo" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_undecodable_entry_is_a_miss(fake_redis: InMemoryRedis) -> None:
    cache = CacheClient(fake_redis)
    fake_redis._store["broken"] = "{not json"

    assert await cache.get_json("broken") is None


@pytest.mark.asyncio
async def test_delete_pattern_clears_matching_keys(fake_redis: InMemoryRedis) -> None:
    cache = CacheClient(fake_redis)
    await cache.set_json("cart:user:u-1:list:limit10:offset0", {"total": 1})
    await cache.set_json("cart:user:u-1:list:limit10:offset10", {"total": 1})
    await cache.set_json("cart:user:u-2:list:limit10:offset0", {"total": 3})

    await cache.delete_pattern(owner_list_pattern("cart", "u-1"))

    assert fake_redis.keys() == ["cart:user:u-2:list:limit10:offset0"]


@pytest.mark.asyncio
async def test_invalidate_user_clears_point_natural_and_listing_keys(
    fake_redis: InMemoryRedis,
) -> None:
    cache = CacheClient(fake_redis)
    for key in (
        point_key("user", "u-1"),
        natural_key("user", "old@example.com"),
        natural_key("user", "new@example.com"),
        list_key("user", limit=10, offset=0),
        instructors_key(limit=10, offset=0),
        ids_key("user", ["u-1", "u-2"]),
        point_key("user", "u-2"),
    ):
        await cache.set_json(key, {"cached": True})

    await invalidate_user(cache, "u-1", "old@example.com", "new@example.com", None)

    assert fake_redis.keys() == [point_key("user", "u-2")]


@pytest.mark.asyncio
async def test_invalidate_collection_spares_other_owners(
    fake_redis: InMemoryRedis,
) -> None:
    cache = CacheClient(fake_redis)
    await cache.set_json(point_key("cart", "c-1"), {})
    await cache.set_json(owner_list_key("cart", "u-1", limit=10, offset=0), {})
    await cache.set_json(owner_list_key("cart", "u-2", limit=10, offset=0), {})
    await cache.set_json(owner_list_key("wishlist", "u-1", limit=10, offset=0), {})

    await invalidate_collection(cache, "cart", "c-1", "u-1")

    assert fake_redis.keys() == [
        owner_list_key("cart", "u-2", limit=10, offset=0),
        owner_list_key("wishlist", "u-1", limit=10, offset=0),
    ]


@pytest.mark.asyncio
async def test_connect_redis_returns_none_when_unreachable(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    class _Unreachable(UnreachableRedis):
        closed = False

        async def aclose(self) -> None:
            type(self).closed = True

    monkeypatch.setattr(
        "coursecart.cache.Redis.from_url", lambda *_args, **_kwargs: _Unreachable()
    )

    assert await connect_redis("redis://nowhere:6379/0") is None
    assert _Unreachable.closed is True
