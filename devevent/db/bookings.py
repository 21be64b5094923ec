"""Bookings repository module."""

from datetime import UTC, datetime
from typing import Any

from devevent.db.core import _get_connection, _get_transaction


def _row_to_booking(row: tuple) -> dict[str, Any]:
    return {
        "id": str(row[0]),
        "event_id": str(row[1]),
        "email": row[2],
        "created_at": row[3].astimezone(UTC).isoformat(),
        "updated_at": row[4].astimezone(UTC).isoformat(),
    }


async def booking_insert(event_id: int, email: str, now: datetime) -> dict[str, Any]:
    async with _get_connection() as conn:
        row = await (
            await conn.execute(
                """INSERT INTO bookings (event_id, email, created_at, updated_at)
                   VALUES (%s, %s, %s, %s)
                   RETURNING id, event_id, email, created_at, updated_at""",
                (event_id, email, now, now),
            )
        ).fetchone()
        return _row_to_booking(row)


async def booking_insert_many(event_id: int, emails: list[str], now: datetime) -> list[dict[str, Any]]:
    """Insert several bookings for one event in a single transaction."""
    if not emails:
        return []
    async with _get_transaction() as conn:
        result = []
        for email in emails:
            row = await (
                await conn.execute(
                    """INSERT INTO bookings (event_id, email, created_at, updated_at)
                       VALUES (%s, %s, %s, %s)
                       RETURNING id, event_id, email, created_at, updated_at""",
                    (event_id, email, now, now),
                )
            ).fetchone()
            result.append(_row_to_booking(row))
        return result


async def booking_list_for_event(event_id: int) -> list[dict[str, Any]]:
    async with _get_connection() as conn:
        rows = await conn.execute(
            """SELECT id, event_id, email, created_at, updated_at
               FROM bookings WHERE event_id = %s
               ORDER BY created_at DESC, id DESC""",
            (event_id,),
        )
        return [_row_to_booking(row) async for row in rows]


async def booking_count_for_event(event_id: int) -> int:
    async with _get_connection() as conn:
        row = await (
            await conn.execute("SELECT COUNT(*) FROM bookings WHERE event_id = %s", (event_id,))
        ).fetchone()
        return int(row[0]) if row else 0
