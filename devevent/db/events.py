"""Events repository module."""

from datetime import UTC, datetime
from typing import Any

from devevent.db.core import _get_connection

EVENT_FIELDS = (
    "title",
    "slug",
    "description",
    "overview",
    "image",
    "venue",
    "location",
    "date",
    "time",
    "mode",
    "audience",
    "agenda",
    "organizer",
    "tags",
)

_SELECT_COLUMNS = ", ".join(("id",) + EVENT_FIELDS + ("created_at", "updated_at"))


def _row_to_event(row: tuple) -> dict[str, Any]:
    event: dict[str, Any] = {"id": str(row[0])}
    for name, value in zip(EVENT_FIELDS, row[1:]):
        event[name] = list(value) if name in ("agenda", "tags") else value
    event["created_at"] = row[-2].astimezone(UTC).isoformat()
    event["updated_at"] = row[-1].astimezone(UTC).isoformat()
    return event


async def event_slug_exists(slug: str, exclude_id: int | None = None) -> bool:
    sql = "SELECT 1 FROM events WHERE slug = %s"
    params: list[Any] = [slug]
    if exclude_id is not None:
        sql += " AND id <> %s"
        params.append(exclude_id)
    async with _get_connection() as conn:
        row = await (await conn.execute(sql + " LIMIT 1", tuple(params))).fetchone()
        return row is not None


async def event_insert(fields: dict[str, Any], now: datetime) -> dict[str, Any]:
    """Insert an event. Raises ``UniqueViolation`` when the slug is taken."""
    columns = EVENT_FIELDS + ("created_at", "updated_at")
    placeholders = ", ".join(["%s"] * len(columns))
    params = tuple(fields[name] for name in EVENT_FIELDS) + (now, now)
    async with _get_connection() as conn:
        row = await (
            await conn.execute(
                f"INSERT INTO events ({', '.join(columns)}) VALUES ({placeholders}) "
                f"RETURNING {_SELECT_COLUMNS}",
                params,
            )
        ).fetchone()
        return _row_to_event(row)


async def event_update(event_id: int, fields: dict[str, Any], now: datetime) -> dict[str, Any] | None:
    """Overwrite every event field and stamp ``updated_at``.

    Returns None when the row no longer exists.
    """
    assignments = ", ".join(f"{name} = %s" for name in EVENT_FIELDS)
    params = tuple(fields[name] for name in EVENT_FIELDS) + (now, event_id)
    async with _get_connection() as conn:
        row = await (
            await conn.execute(
                f"UPDATE events SET {assignments}, updated_at = %s WHERE id = %s "
                f"RETURNING {_SELECT_COLUMNS}",
                params,
            )
        ).fetchone()
        if not row:
            return None
        return _row_to_event(row)


async def event_get_by_slug(slug: str) -> dict[str, Any] | None:
    async with _get_connection() as conn:
        row = await (
            await conn.execute(f"SELECT {_SELECT_COLUMNS} FROM events WHERE slug = %s", (slug,))
        ).fetchone()
        if not row:
            return None
        return _row_to_event(row)


async def event_get_by_id(event_id: int) -> dict[str, Any] | None:
    async with _get_connection() as conn:
        row = await (
            await conn.execute(f"SELECT {_SELECT_COLUMNS} FROM events WHERE id = %s", (event_id,))
        ).fetchone()
        if not row:
            return None
        return _row_to_event(row)


async def event_list() -> list[dict[str, Any]]:
    """All events, most recently created first."""
    async with _get_connection() as conn:
        rows = await conn.execute(
            f"SELECT {_SELECT_COLUMNS} FROM events ORDER BY created_at DESC, id DESC"
        )
        return [_row_to_event(row) async for row in rows]


async def event_similar(event_id: int, tags: list[str], limit: int) -> list[dict[str, Any]]:
    """Events other than ``event_id`` sharing at least one of ``tags``."""
    if not tags:
        return []
    async with _get_connection() as conn:
        rows = await conn.execute(
            f"SELECT {_SELECT_COLUMNS} FROM events WHERE id <> %s AND tags && %s::text[] LIMIT %s",
            (event_id, list(tags), limit),
        )
        return [_row_to_event(row) async for row in rows]


async def event_delete_unbooked(event_id: int) -> bool:
    """Delete the event only if no booking references it.

    Returns True when a row was deleted.
    """
    async with _get_connection() as conn:
        cur = await conn.execute(
            """
            DELETE FROM events
            WHERE id = %s
              AND NOT EXISTS (SELECT 1 FROM bookings WHERE event_id = %s)
            """,
            (event_id, event_id),
        )
        return cur.rowcount > 0
