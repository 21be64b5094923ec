import logging
from typing import Any

from fastapi import APIRouter

from devevent import db

logger = logging.getLogger("devevent.health")
router = APIRouter()


@router.get("/health")
async def health() -> dict[str, Any]:
    database = "healthy"
    schema_version = None
    try:
        info = await db.get_schema_info()
        schema_version = info["current_version"]
    except Exception as e:
        logger.warning("Database health check failed: %s", e)
        database = "unhealthy"

    return {
        "status": "ok",
        "database": database,
        "schema_version": schema_version,
        "pool": db.get_pool_stats(),
    }
