#!/usr/bin/env python
"""Initialize database tables."""
import asyncio
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from coursecart.db.connection import create_engine
from coursecart.db.models import Base
from coursecart.main import _validate_environment
from coursecart.settings import get_settings


def _ensure_sqlite_directory() -> None:
    """Create the parent directory of a file-backed SQLite database."""

    url = get_settings().resolved_database_url
    if not url.startswith("sqlite") or ":memory:" in url:
        return
    database_path = Path(url.split(":///", 1)[1])
    database_path.parent.mkdir(parents=True, exist_ok=True)


async def init_db() -> None:
    _ensure_sqlite_directory()
    engine = create_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print("✓ Database tables created successfully")


if __name__ == "__main__":
    _validate_environment()
    asyncio.run(init_db())
