"""Helpers for constructing RPC error envelopes.

Every exception handler funnels through :func:`build_error_envelope` so the
request id and a timezone-aware timestamp are always present in ``details``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from coursecart.schemas.error import ErrorBody, ErrorCode, ErrorEnvelope
from coursecart.utils.request_context import get_request_id

__all__ = [
    "STATUS_BY_CODE",
    "build_error_envelope",
    "validation_error_details",
]

STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.DUPLICATE: 409,
    ErrorCode.VALIDATION: 422,
    ErrorCode.INFRASTRUCTURE: 503,
    ErrorCode.INTERNAL: 500,
}


def _current_timestamp() -> datetime:
    """Return a timezone-aware timestamp; tests monkeypatch this helper."""

    return datetime.now(UTC)


def build_error_envelope(
    *,
    code: ErrorCode,
    message: str,
    details: Mapping[str, Any] | None = None,
    request_id: str | None = None,
) -> ErrorEnvelope:
    """Construct an :class:`ErrorEnvelope` enriched with request metadata."""

    enriched: dict[str, Any] = dict(details or {})
    enriched["requestId"] = request_id or get_request_id() or None
    enriched["timestamp"] = _current_timestamp().isoformat()
    return ErrorEnvelope(error=ErrorBody(code=code, message=message, details=enriched))


def validation_error_details(errors: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
    """Flatten pydantic error dictionaries into ``{"fields": [...]}``.

    The ``body`` prefix FastAPI adds to locations is dropped so callers see
    the request field names they sent.
    """

    fields = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        fields.append(
            {
                "field": ".".join(location),
                "message": error.get("msg", "Invalid value"),
            }
        )
    return {"fields": fields}
