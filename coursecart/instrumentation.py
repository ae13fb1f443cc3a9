"""Timing instrumentation for gateways and SQL statements.

Gateways stay plain classes; :func:`instrument` wraps an instance at
composition time so every public coroutine is timed and logged.  Statement
level timing is attached to the engine through SQLAlchemy events.
"""

from __future__ import annotations

import functools
import inspect
import logging
import time
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

G = TypeVar("G")

_STATEMENT_PREVIEW_CHARS = 500


class InstrumentedGateway(Generic[G]):
    """Proxy that times every public coroutine of the wrapped gateway.

    Attribute access is forwarded untouched except for coroutine methods,
    which are wrapped once and memoised on the proxy.
    """

    def __init__(self, target: G, *, component: str, slow_threshold: float) -> None:
        self._target = target
        self._component = component
        self._slow_threshold = slow_threshold
        self._wrapped: dict[str, Callable[..., Any]] = {}

    @property
    def wrapped(self) -> G:
        return self._target

    def __getattr__(self, name: str) -> Any:
        attribute = getattr(self._target, name)
        if name.startswith("_") or not inspect.iscoroutinefunction(attribute):
            return attribute
        wrapper = self._wrapped.get(name)
        if wrapper is None:
            wrapper = self._time(name, attribute)
            self._wrapped[name] = wrapper
        return wrapper

    def _time(self, name: str, method: Callable[..., Any]) -> Callable[..., Any]:
        operation = f"{self._component}.{name}"

        @functools.wraps(method)
        async def timed(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            try:
                result = await method(*args, **kwargs)
            except Exception as exc:
                elapsed = time.perf_counter() - started
                logger.warning(
                    "%s failed after %.3fs: %s",
                    operation,
                    elapsed,
                    exc,
                    extra={"operation": operation, "duration_seconds": elapsed},
                )
                raise
            elapsed = time.perf_counter() - started
            level = logging.WARNING if elapsed > self._slow_threshold else logging.DEBUG
            logger.log(
                level,
                "%s completed in %.3fs",
                operation,
                elapsed,
                extra={"operation": operation, "duration_seconds": elapsed},
            )
            return result

        return timed

    def __repr__(self) -> str:
        return f"InstrumentedGateway({self._target!r}, component={self._component!r})"


def instrument(target: G, *, component: str, slow_threshold: float = 0.5) -> G:
    """Wrap ``target`` so each public coroutine call is timed and logged."""

    return InstrumentedGateway(  # type: ignore[return-value]
        target, component=component, slow_threshold=slow_threshold
    )


def setup_query_monitoring(engine: AsyncEngine, slow_query_threshold: float = 0.1) -> None:
    """Log a warning for every SQL statement slower than the threshold."""

    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "before_cursor_execute")
    def _before_cursor_execute(
        conn: Any, cursor: Any, statement: str, parameters: Any, context: Any, executemany: bool
    ) -> None:
        conn.info.setdefault("query_start_time", []).append(time.perf_counter())

    @event.listens_for(sync_engine, "after_cursor_execute")
    def _after_cursor_execute(
        conn: Any, cursor: Any, statement: str, parameters: Any, context: Any, executemany: bool
    ) -> None:
        total = time.perf_counter() - conn.info["query_start_time"].pop()
        if total <= slow_query_threshold:
            return
        preview = statement[:_STATEMENT_PREVIEW_CHARS]
        if len(statement) > _STATEMENT_PREVIEW_CHARS:
            preview += "..."
        logger.warning(
            f"Slow query detected ({total:.3f}s): {preview}",
            extra={
                "duration_seconds": total,
                "query": statement,
                "threshold_seconds": slow_query_threshold,
            },
        )

    logger.info(
        f"Query performance monitoring enabled (slow query threshold: {slow_query_threshold}s)"
    )


__all__ = ["InstrumentedGateway", "instrument", "setup_query_monitoring"]
