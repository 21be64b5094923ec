"""Schema bootstrap and introspection for the event store."""

import logging

from devevent.db.migrations import get_current_version, get_migration_history, run_migrations

logger = logging.getLogger(__name__)


async def _ensure_schema() -> None:
    """Apply pending migrations. Idempotent."""
    before = await get_current_version()
    if await run_migrations():
        logger.info("Schema migrated from version %d to %d", before, await get_current_version())
    else:
        logger.info("Schema at version %d", before)


async def get_schema_info() -> dict:
    return {
        "current_version": await get_current_version(),
        "migration_history": await get_migration_history(),
    }
