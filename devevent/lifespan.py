"""Startup and shutdown of the event store connection."""

import logging
from dataclasses import dataclass

from devevent import db

logger = logging.getLogger(__name__)


@dataclass
class LifespanResources:
    db_enabled: bool = False


async def init_database() -> bool:
    """Open the pool and apply pending migrations.

    An unreachable database is not fatal at startup; the pool is opened on
    the first request that needs it.
    """
    try:
        await db.init_pool()
    except Exception as e:
        logger.warning("Event store not ready at startup, connecting on demand: %s", e)
        return False
    logger.info("Event store ready")
    return True


async def setup_resources() -> LifespanResources:
    return LifespanResources(db_enabled=await init_database())


async def cleanup_resources(resources: LifespanResources) -> None:
    resources.db_enabled = False
    try:
        await db.close_pool()
    except Exception:
        logger.exception("Error closing database pool")
