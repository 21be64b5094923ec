"""Database package: connection pool, schema and repositories."""

from devevent.db.bookings import (
    booking_count_for_event,
    booking_insert,
    booking_insert_many,
    booking_list_for_event,
)
from devevent.db.core import close_pool, get_pool, get_pool_stats, init_pool
from devevent.db.events import (
    event_delete_unbooked,
    event_get_by_id,
    event_get_by_slug,
    event_insert,
    event_list,
    event_similar,
    event_slug_exists,
    event_update,
)
from devevent.db.schema import get_schema_info

__all__ = [
    "booking_count_for_event",
    "booking_insert",
    "booking_insert_many",
    "booking_list_for_event",
    "close_pool",
    "event_delete_unbooked",
    "event_get_by_id",
    "event_get_by_slug",
    "event_insert",
    "event_list",
    "event_similar",
    "event_slug_exists",
    "event_update",
    "get_pool",
    "get_pool_stats",
    "get_schema_info",
    "init_pool",
]
