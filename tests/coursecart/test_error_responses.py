"""Tests covering the helper utilities that construct error envelopes."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from coursecart.schemas.error import ErrorCode
from coursecart.utils import error_responses
from coursecart.utils.error_responses import (
    STATUS_BY_CODE,
    build_error_envelope,
    validation_error_details,
)
from coursecart.utils.request_context import clear_request_id, set_request_id


def _freeze_timestamp(monkeypatch: pytest.MonkeyPatch, fixed: datetime) -> None:
    """Override ``_current_timestamp`` to yield the provided ``datetime``."""

    monkeypatch.setattr(error_responses, "_current_timestamp", lambda: fixed)


def test_envelope_includes_request_context(monkeypatch: pytest.MonkeyPatch) -> None:
    """The helper should embed the request ID and a timezone-aware timestamp."""

    _freeze_timestamp(monkeypatch, datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC))

    token = set_request_id("req-123")
    try:
        envelope = build_error_envelope(
            code=ErrorCode.NOT_FOUND, message="Cart not found", details={"id": "c-1"}
        )
    finally:
        clear_request_id(token)

    assert envelope.model_dump(mode="json") == {
        "error": {
            "code": "NOT_FOUND",
            "message": "Cart not found",
            "details": {
                "id": "c-1",
                "requestId": "req-123",
                "timestamp": "2024-01-01T12:00:00+00:00",
            },
        }
    }


def test_envelope_without_request_context(monkeypatch: pytest.MonkeyPatch) -> None:
    _freeze_timestamp(monkeypatch, datetime(2024, 1, 1, tzinfo=UTC))

    envelope = build_error_envelope(code=ErrorCode.INTERNAL, message="boom")

    assert envelope.error.details["requestId"] is None
    assert envelope.error.details["timestamp"].endswith("+00:00")


def test_explicit_request_id_wins() -> None:
    token = set_request_id("from-context")
    try:
        envelope = build_error_envelope(
            code=ErrorCode.DUPLICATE, message="taken", request_id="explicit"
        )
    finally:
        clear_request_id(token)

    assert envelope.error.details["requestId"] == "explicit"


def test_every_code_maps_to_a_status() -> None:
    assert {code: STATUS_BY_CODE[code] for code in ErrorCode} == {
        ErrorCode.NOT_FOUND: 404,
        ErrorCode.DUPLICATE: 409,
        ErrorCode.VALIDATION: 422,
        ErrorCode.INFRASTRUCTURE: 503,
        ErrorCode.INTERNAL: 500,
    }


def test_validation_details_strip_body_prefix() -> None:
    details = validation_error_details(
        [
            {"loc": ("body", "pagination", "pageSize"), "msg": "too large"},
            {"loc": ("body", "userId"), "msg": "Field required"},
            {"loc": (), "msg": "Invalid JSON"},
        ]
    )

    assert details == {
        "fields": [
            {"field": "pagination.pageSize", "message": "too large"},
            {"field": "userId", "message": "Field required"},
            {"field": "", "message": "Invalid JSON"},
        ]
    }
