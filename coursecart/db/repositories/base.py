"""Statement helpers shared by the persistence gateways."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import Table
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

_CONFLICT_IGNORING_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


def dialect_name(session: AsyncSession) -> str:
    return session.get_bind().dialect.name


async def insert_ignoring_conflicts(
    session: AsyncSession, table: Table, rows: Sequence[dict[str, Any]]
) -> int:
    """Insert ``rows`` skipping any that collide with a unique constraint.

    Returns the number of rows actually written, so callers can tell whether a
    concurrent writer got there first.
    """

    if not rows:
        return 0
    name = dialect_name(session)
    insert_factory = _CONFLICT_IGNORING_INSERTS.get(name)
    if insert_factory is None:
        raise RuntimeError(f"Conflict-ignoring inserts are not supported on {name}")
    statement = insert_factory(table).values(list(rows)).on_conflict_do_nothing()
    result = await session.execute(statement)
    return max(result.rowcount or 0, 0)


__all__ = ["dialect_name", "insert_ignoring_conflicts"]
