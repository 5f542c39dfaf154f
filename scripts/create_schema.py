"""Create all tables from the ORM metadata.

Usage:
    uv run python -m scripts.create_schema
Requires: DATABASE_URL. Existing tables are left untouched.
All imports use app.*.
"""

import asyncio
import sys

import app.infrastructure.persistence.models  # noqa: F401  (registers all tables)
from app.core.config import get_settings
from app.infrastructure.persistence import database


async def main() -> None:
    settings = get_settings()
    database.get_session_factory()
    async with database.engine.begin() as conn:
        await conn.run_sync(database.Base.metadata.create_all)
    print(f"Schema ready ({len(database.Base.metadata.tables)} tables) on {settings.database_url.split('@')[-1]}")
    await database.dispose_engine()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except ValueError as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)
