import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError

from coursecart.cache import connect_redis
from coursecart.db.connection import dispose_engine, get_engine
from coursecart.domain.errors import (
    DomainValidationError,
    DuplicateError,
    NotFoundError,
)
from coursecart.settings import AppSettings, get_settings

from .api import cart, users, wishlist
from .schemas.error import ErrorCode
from .utils.error_responses import (
    STATUS_BY_CODE,
    build_error_envelope,
    validation_error_details,
)
from .utils.request_context import get_request_id, set_request_id

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level_numeric,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _validate_environment(active_settings: AppSettings | None = None) -> None:
    """Log warnings for optional configuration that was left unset."""

    warnings = (active_settings or get_settings()).optional_config_warnings()
    if warnings:
        logger.warning("Environment Configuration Warnings:")
        for warning in warnings:
            logger.warning(f"  - {warning}")


def _sanitize_database_url(url: str) -> str:
    """Hide the password portion of a database URL before logging it."""

    scheme, separator, rest = url.partition("://")
    if not separator or "@" not in rest:
        return url
    credentials, _, location = rest.rpartition("@")
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:***@{location}"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the Redis handle for the process and release resources on shutdown."""

    _validate_environment(settings)
    logger.info(f"Database: {_sanitize_database_url(settings.resolved_database_url)}")

    app.state.redis = await connect_redis(settings.redis_url)

    yield

    logger.info("Shutting down coursecart API")
    if app.state.redis is not None:
        await app.state.redis.aclose()
        app.state.redis = None
    await dispose_engine()


app = FastAPI(
    title="coursecart API",
    version="0.1.0",
    description="Carts, wishlists and user profiles for the course catalog.",
    lifespan=lifespan,
    redirect_slashes=False,
)


def _error_response(
    code: ErrorCode, message: str, details: dict | None = None
) -> JSONResponse:
    envelope = build_error_envelope(code=code, message=message, details=details)
    return JSONResponse(
        status_code=STATUS_BY_CODE[code],
        content=envelope.model_dump(mode="json"),
    )


# Middleware to add request ID to each request
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Reuse the caller's request ID or mint one, and echo it back."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    set_request_id(request_id)
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


# Exception handlers
@app.exception_handler(NotFoundError)
async def not_found_exception_handler(request: Request, exc: NotFoundError):
    logger.info("Not found for request %s to %s: %s", get_request_id(), request.url.path, exc)
    return _error_response(ErrorCode.NOT_FOUND, exc.message, exc.details)


@app.exception_handler(DuplicateError)
async def duplicate_exception_handler(request: Request, exc: DuplicateError):
    logger.info("Duplicate for request %s to %s: %s", get_request_id(), request.url.path, exc)
    return _error_response(ErrorCode.DUPLICATE, exc.message, exc.details)


@app.exception_handler(DomainValidationError)
async def domain_validation_exception_handler(
    request: Request, exc: DomainValidationError
):
    logger.info(
        "Rejected request %s to %s: %s", get_request_id(), request.url.path, exc
    )
    return _error_response(ErrorCode.VALIDATION, exc.message, exc.details)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors."""
    errors = exc.errors()
    logger.warning(
        "Validation error for request %s to %s: %s errors",
        get_request_id(),
        request.url.path,
        len(errors),
    )
    return _error_response(
        ErrorCode.VALIDATION,
        "Request validation failed",
        validation_error_details(errors),
    )


@app.exception_handler(ValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: ValidationError):
    """Handle Pydantic validation errors raised while building responses."""
    errors = exc.errors()
    logger.warning(
        "Pydantic validation error for request %s to %s: %s errors",
        get_request_id(),
        request.url.path,
        len(errors),
    )
    return _error_response(
        ErrorCode.VALIDATION, "Data validation failed", validation_error_details(errors)
    )


@app.exception_handler(IntegrityError)
async def database_integrity_exception_handler(request: Request, exc: IntegrityError):
    """Uniqueness violations that escaped the gateways surface as duplicates."""
    logger.error(
        "Database integrity error for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        str(exc),
    )
    return _error_response(
        ErrorCode.DUPLICATE,
        "Data integrity constraint violation",
        {"reason": "The operation would violate a database constraint."},
    )


@app.exception_handler(OperationalError)
@app.exception_handler(DBAPIError)
@app.exception_handler(SQLAlchemyTimeoutError)
async def database_exception_handler(request: Request, exc: Exception):
    """Handle database connectivity, timeout and driver errors."""
    logger.error(
        "Database error for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        str(exc),
    )
    return _error_response(
        ErrorCode.INFRASTRUCTURE,
        "Database operation failed",
        {"component": "database", "retryAfter": 5},
    )


@app.exception_handler(RedisError)
async def cache_exception_handler(request: Request, exc: RedisError):
    logger.error(
        "Cache error for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        str(exc),
    )
    return _error_response(
        ErrorCode.INFRASTRUCTURE,
        "Cache operation failed",
        {"component": "cache", "retryAfter": 5},
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle all other unhandled exceptions."""
    logger.exception(
        "Unhandled exception for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        type(exc).__name__,
    )
    return _error_response(
        ErrorCode.INTERNAL,
        "Internal server error",
        {"exception": type(exc).__name__},
    )


@app.get("/health", tags=["system"])
async def healthcheck(request: Request) -> JSONResponse:
    """Report database and cache reachability."""
    checks = {"database": "ok", "cache": "disabled"}
    try:
        async with get_engine().connect() as connection:
            await connection.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning(f"Health check database probe failed: {exc}")
        checks["database"] = "unavailable"

    redis = getattr(request.app.state, "redis", None)
    if redis is not None:
        try:
            await redis.ping()
            checks["cache"] = "ok"
        except (RedisError, OSError) as exc:
            logger.warning(f"Health check cache probe failed: {exc}")
            checks["cache"] = "unavailable"

    healthy = checks["database"] == "ok"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ok" if healthy else "degraded", **checks},
    )


app.include_router(cart.router, prefix="/rpc", tags=["cart"])
app.include_router(wishlist.router, prefix="/rpc", tags=["wishlist"])
app.include_router(users.router, prefix="/rpc", tags=["users"])
