"""Building blocks shared by the RPC request and response schemas."""

from __future__ import annotations

from typing import Annotated, Generic, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from coursecart.settings import get_settings

T = TypeVar("T")


def default_page_size() -> int:
    return get_settings().default_page_size


def check_page_size(value: int) -> int:
    """Reject page sizes above the configured ``MAX_PAGE_SIZE``."""
    maximum = get_settings().max_page_size
    if value > maximum:
        raise ValueError(f"pageSize must be at most {maximum}")
    return value


PageSize = Annotated[int, Field(ge=1), AfterValidator(check_page_size)]


class RpcModel(BaseModel):
    """Base model exposing camelCase field names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SuccessEnvelope(RpcModel, Generic[T]):
    """Success half of the success/error envelope."""

    success: T


class PaginationRequest(RpcModel):
    page: int = Field(1, ge=1, description="1-based page number")
    page_size: PageSize = Field(default_factory=default_page_size)


class PaginationData(RpcModel):
    total_items: int
    total_pages: int


__all__ = [
    "PageSize",
    "PaginationData",
    "PaginationRequest",
    "RpcModel",
    "SuccessEnvelope",
    "check_page_size",
    "default_page_size",
]
