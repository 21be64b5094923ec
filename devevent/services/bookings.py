"""Booking write path.

A booking is only accepted when the referenced event exists at the time of
the write. The storage engine does not enforce the reference.
"""

import logging
import re
from datetime import UTC, datetime
from typing import Any

from devevent import db
from devevent.errors import FieldValidationError, NotFoundError
from devevent.services.common import storage_errors
from devevent.services.events import get_event_by_slug

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
EVENT_ID_RE = re.compile(r"^[1-9]\d*$")


def _email_error(email: Any) -> str | None:
    if email is None or (isinstance(email, str) and not email.strip()):
        return "Email is required"
    if not isinstance(email, str) or not EMAIL_RE.match(email.strip().lower()):
        return "Email must be a valid email address"
    return None


def _parse_event_id(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and EVENT_ID_RE.match(value.strip()):
        return int(value.strip())
    return None


def validate_booking(event_id: Any, email: Any) -> tuple[int, str]:
    """Return ``(event_id, email)`` normalized, or raise with every field error."""
    errors: dict[str, str] = {}
    parsed_id = _parse_event_id(event_id)
    if event_id is None or (isinstance(event_id, str) and not event_id.strip()):
        errors["eventId"] = "Event ID is required"
    elif parsed_id is None:
        errors["eventId"] = "Event ID must be a valid identifier"
    email_error = _email_error(email)
    if email_error:
        errors["email"] = email_error
    if errors:
        raise FieldValidationError(errors)
    return parsed_id, email.strip().lower()


async def _require_event(event_id: int) -> dict[str, Any]:
    event = await db.event_get_by_id(event_id)
    if event is None:
        raise NotFoundError(detail=f"Event with ID {event_id} does not exist", event_id=str(event_id))
    return event


async def create_booking(event_id: Any, email: Any) -> dict[str, Any]:
    event_pk, email = validate_booking(event_id, email)
    with storage_errors("create_booking"):
        await _require_event(event_pk)
        booking = await db.booking_insert(event_pk, email, datetime.now(UTC))
    logger.info("Created booking id=%s for event id=%s", booking["id"], event_pk)
    return booking


async def create_bookings(
    event_id: Any,
    emails: list[Any],
    validate_event: bool = True,
) -> list[dict[str, Any]]:
    """Insert several bookings for one event.

    The event lookup is done once for the batch; callers that already
    checked the event may pass ``validate_event=False`` to skip it.
    """
    errors: dict[str, str] = {}
    event_pk = _parse_event_id(event_id)
    if event_pk is None:
        errors["eventId"] = "Event ID must be a valid identifier"
    normalized = []
    for i, email in enumerate(emails):
        email_error = _email_error(email)
        if email_error:
            errors[f"emails[{i}]"] = email_error
        else:
            normalized.append(email.strip().lower())
    if errors:
        raise FieldValidationError(errors)
    with storage_errors("create_bookings"):
        if validate_event:
            await _require_event(event_pk)
        bookings = await db.booking_insert_many(event_pk, normalized, datetime.now(UTC))
    logger.info("Created %d bookings for event id=%s", len(bookings), event_pk)
    return bookings


async def list_bookings_for_event(slug: str) -> list[dict[str, Any]]:
    event = await get_event_by_slug(slug)
    with storage_errors("list_bookings_for_event"):
        return await db.booking_list_for_event(int(event["id"]))


async def count_bookings(event_id: int) -> int:
    with storage_errors("count_bookings"):
        return await db.booking_count_for_event(event_id)
