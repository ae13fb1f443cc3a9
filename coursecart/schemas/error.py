"""Error envelope schemas shared by every RPC method."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Error taxonomy exposed to RPC callers."""

    NOT_FOUND = "NOT_FOUND"
    DUPLICATE = "DUPLICATE"
    VALIDATION = "VALIDATION"
    INFRASTRUCTURE = "INFRASTRUCTURE"
    INTERNAL = "INTERNAL"


class ErrorBody(BaseModel):
    code: ErrorCode = Field(..., description="Category of error")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Structured context such as offending fields and the request id",
    )


class ErrorEnvelope(BaseModel):
    """Failure half of the success/error envelope."""

    error: ErrorBody

    model_config = {
        "json_schema_extra": {
            "example": {
                "error": {
                    "code": "NOT_FOUND",
                    "message": "User not found",
                    "details": {
                        "id": "0b7c7e5e-0d7e-4c55-9a55-6a0f1f2f9d11",
                        "requestId": "req_abc123xyz",
                        "timestamp": "2025-11-03T10:30:00+00:00",
                    },
                }
            }
        }
    }


__all__ = ["ErrorBody", "ErrorCode", "ErrorEnvelope"]
