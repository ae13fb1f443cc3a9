"""Tests for the gateway timing proxy."""

from __future__ import annotations

import logging

import pytest

from coursecart.instrumentation import InstrumentedGateway, instrument


class _Gateway:
    label = "demo"

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def find(self, key: str) -> str:
        self.calls.append(key)
        return key.upper()

    async def explode(self) -> None:
        raise LookupError("missing")

    def describe(self) -> str:
        return "plain"

    async def _private(self) -> str:
        return "hidden"


@pytest.mark.asyncio
async def test_instrument_times_public_coroutines(
    caplog: pytest.LogCaptureFixture,
) -> None:
    target = _Gateway()
    gateway = instrument(target, component="demo_repository")

    with caplog.at_level(logging.DEBUG, logger="coursecart.instrumentation"):
        assert await gateway.find("abc") == "ABC"

    assert target.calls == ["abc"]
    records = [r for r in caplog.records if r.name == "coursecart.instrumentation"]
    assert records
    assert records[-1].operation == "demo_repository.find"
    assert records[-1].levelno == logging.DEBUG


@pytest.mark.asyncio
async def test_slow_calls_are_logged_as_warnings(
    caplog: pytest.LogCaptureFixture,
) -> None:
    gateway = instrument(_Gateway(), component="demo_repository", slow_threshold=-1)

    with caplog.at_level(logging.DEBUG, logger="coursecart.instrumentation"):
        await gateway.find("abc")

    assert caplog.records[-1].levelno == logging.WARNING


@pytest.mark.asyncio
async def test_failures_are_logged_and_reraised(
    caplog: pytest.LogCaptureFixture,
) -> None:
    gateway = instrument(_Gateway(), component="demo_repository")

    with caplog.at_level(logging.WARNING, logger="coursecart.instrumentation"):
        with pytest.raises(LookupError):
            await gateway.explode()

    assert "demo_repository.explode failed" in caplog.records[-1].getMessage()


def test_non_coroutine_attributes_pass_through() -> None:
    target = _Gateway()
    gateway = instrument(target, component="demo_repository")

    assert isinstance(gateway, InstrumentedGateway)
    assert gateway.wrapped is target
    assert gateway.label == "demo"
    assert gateway.describe() == "plain"
    assert gateway._private.__func__ is _Gateway._private
    assert gateway.find is gateway.find
