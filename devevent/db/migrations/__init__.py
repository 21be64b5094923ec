"""Versioned schema migrations.

Each ``NNN_description.sql`` file in this package is one migration. Applied
versions are recorded in ``schema_migrations``; a migration's SQL and its
record are committed together, so a failed migration leaves no trace.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from devevent.db.core import _get_connection

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

_CREATE_MIGRATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER PRIMARY KEY,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    description TEXT
);
"""


@dataclass(frozen=True)
class Migration:
    version: int
    description: str
    path: Path

    @classmethod
    def from_path(cls, path: Path) -> "Migration | None":
        number, _, rest = path.stem.partition("_")
        if not number.isdigit():
            return None
        return cls(version=int(number), description=rest, path=path)

    def read_sql(self) -> str:
        return self.path.read_text()


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[Migration]:
    """All migration files in ``directory``, ordered by version."""
    found = (Migration.from_path(p) for p in directory.glob("*.sql"))
    return sorted((m for m in found if m is not None), key=lambda m: m.version)


async def get_current_version() -> int:
    """Highest applied version, 0 on an empty database."""
    async with _get_connection() as conn:
        await conn.execute(_CREATE_MIGRATIONS_TABLE)
        cur = await conn.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
        row = await cur.fetchone()
    return int(row[0]) if row else 0


async def apply_migration(version: int, sql: str, description: str = "") -> bool:
    """Apply one migration unless its version is already recorded.

    Returns True if it was applied.
    """
    if version <= await get_current_version():
        logger.debug("Migration %d already applied", version)
        return False

    async with _get_connection() as conn:
        try:
            async with conn.transaction():
                await conn.execute(sql)
                await conn.execute(
                    "INSERT INTO schema_migrations (version, description) VALUES (%s, %s)",
                    (version, description),
                )
        except Exception:
            logger.exception("Migration %d (%s) failed", version, description)
            raise

    logger.info("Applied migration %d: %s", version, description)
    return True


async def get_pending_migrations() -> list[Migration]:
    current = await get_current_version()
    return [m for m in discover_migrations() if m.version > current]


async def run_migrations() -> int:
    """Apply every pending migration in order and return how many ran."""
    applied = 0
    for migration in await get_pending_migrations():
        if await apply_migration(migration.version, migration.read_sql(), migration.description):
            applied += 1
    if applied:
        logger.info("Applied %d migrations", applied)
    return applied


async def get_migration_history() -> list[dict[str, Any]]:
    async with _get_connection() as conn:
        await conn.execute(_CREATE_MIGRATIONS_TABLE)
        rows = await conn.execute(
            "SELECT version, applied_at, description FROM schema_migrations ORDER BY version"
        )
        return [
            {"version": version, "applied_at": applied_at.isoformat(), "description": description}
            async for version, applied_at, description in rows
        ]
