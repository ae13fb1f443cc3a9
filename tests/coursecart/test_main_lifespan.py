"""Tests covering startup and shutdown inside the FastAPI lifespan."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi import FastAPI

import coursecart.main as coursecart_main
from tests.coursecart.conftest import InMemoryRedis


class _ClosingRedis(InMemoryRedis):
    closed = False

    async def aclose(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_lifespan_owns_the_redis_handle(monkeypatch: pytest.MonkeyPatch) -> None:
    redis = _ClosingRedis()
    disposed: list[bool] = []

    async def _connect(_url: str) -> _ClosingRedis:
        return redis

    async def _dispose() -> None:
        disposed.append(True)

    monkeypatch.setattr(coursecart_main, "connect_redis", _connect)
    monkeypatch.setattr(coursecart_main, "dispose_engine", _dispose)
    app = FastAPI()

    async with coursecart_main.lifespan(app):
        assert app.state.redis is redis

    assert redis.closed is True
    assert app.state.redis is None
    assert disposed == [True]


@pytest.mark.asyncio
async def test_lifespan_runs_without_redis(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _unavailable(_url: str) -> None:
        return None

    async def _noop(*_: Any, **__: Any) -> None:
        return None

    monkeypatch.setattr(coursecart_main, "connect_redis", _unavailable)
    monkeypatch.setattr(coursecart_main, "dispose_engine", _noop)
    app = FastAPI()

    async with coursecart_main.lifespan(app):
        assert app.state.redis is None


def test_sanitize_database_url_hides_password() -> None:
    assert (
        coursecart_main._sanitize_database_url("postgresql+psycopg://app:secret@db/app")
        == "postgresql+psycopg://app:***@db/app"
    )
    assert (
        coursecart_main._sanitize_database_url("sqlite+aiosqlite:///./data/coursecart.db")
        == "sqlite+aiosqlite:///./data/coursecart.db"
    )
