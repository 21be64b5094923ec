"""Event write path and read operations.

Every create and update goes through :func:`prepare_event_write`, which
validates the fields, (re)allocates the slug when the title changed and
normalizes date and time. Persisting retries the whole sequence when the
slug was claimed by a concurrent writer between the check and the insert.
"""

import logging
from datetime import UTC, datetime
from typing import Any

import psycopg
from psycopg import errors as pg_errors
from pydantic import ValidationError

from devevent import db
from devevent.config import get_settings
from devevent.errors import APIError, ConflictError, FieldValidationError, NotFoundError
from devevent.models.events import WRITABLE_FIELDS, EventFields, field_label
from devevent.normalize import is_valid_time, normalize_date, normalize_time
from devevent.services.common import storage_errors
from devevent.slugs import allocate_slug

logger = logging.getLogger(__name__)


def _collect_errors(exc: ValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for err in exc.errors():
        if not err["loc"]:
            continue
        name = str(err["loc"][0])
        if name in errors:
            continue
        if err["type"] == "missing":
            errors[name] = f"{field_label(name)} is required"
        elif err["type"] == "value_error":
            errors[name] = str(err["ctx"]["error"])
        else:
            errors[name] = f"{field_label(name)}: {err['msg']}"
    return errors


def validate_event_fields(data: dict[str, Any], strict_time: bool = False) -> dict[str, Any]:
    """Validate a full event field set, reporting every failing field at once."""
    present = {k: v for k, v in data.items() if k in WRITABLE_FIELDS and v is not None}
    errors: dict[str, str] = {}
    fields: dict[str, Any] | None = None
    try:
        fields = EventFields.model_validate(present).model_dump()
    except ValidationError as e:
        errors = _collect_errors(e)

    if strict_time and "time" not in errors and isinstance(present.get("time"), str):
        if not is_valid_time(normalize_time(present["time"])):
            errors["time"] = "Time must be in HH:mm 24-hour format"

    if errors or fields is None:
        raise FieldValidationError(errors)
    return fields


async def prepare_event_write(
    changes: dict[str, Any],
    existing: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the field set to persist for a create (``existing`` is None) or update.

    The slug is allocated only when the title changed or none is assigned;
    date and time are normalized only when they changed.
    """
    merged: dict[str, Any] = {}
    if existing is not None:
        merged.update({name: existing[name] for name in WRITABLE_FIELDS})
    merged.update({k: v for k, v in changes.items() if k in WRITABLE_FIELDS and v is not None})

    fields = validate_event_fields(merged, strict_time=get_settings().events.strict_time)

    exclude_id = int(existing["id"]) if existing is not None else None
    if existing is None or not existing.get("slug") or fields["title"] != existing["title"]:
        fields["slug"] = await allocate_slug(fields["title"], db.event_slug_exists, exclude_id)
    else:
        fields["slug"] = existing["slug"]

    if existing is None or fields["date"] != existing["date"]:
        fields["date"] = normalize_date(fields["date"])
    if existing is None or fields["time"] != existing["time"]:
        fields["time"] = normalize_time(fields["time"])
    return fields


async def create_event(data: dict[str, Any]) -> dict[str, Any]:
    attempts = get_settings().events.slug_retry_attempts
    slug = None
    with storage_errors("create_event"):
        for attempt in range(1, attempts + 1):
            fields = await prepare_event_write(data)
            slug = fields["slug"]
            try:
                event = await db.event_insert(fields, datetime.now(UTC))
            except pg_errors.UniqueViolation:
                logger.warning(
                    "Slug %s claimed concurrently, retrying (attempt %d/%d)", slug, attempt, attempts
                )
                continue
            logger.info("Created event id=%s slug=%s", event["id"], event["slug"])
            return event
    raise ConflictError(detail="Could not allocate a unique slug", slug=slug)


async def update_event(slug: str, changes: dict[str, Any]) -> dict[str, Any]:
    attempts = get_settings().events.slug_retry_attempts
    new_slug = None
    with storage_errors("update_event"):
        existing = await db.event_get_by_slug(slug)
        if existing is None:
            raise NotFoundError(detail="Event not found", slug=slug)
        for attempt in range(1, attempts + 1):
            fields = await prepare_event_write(changes, existing)
            new_slug = fields["slug"]
            try:
                event = await db.event_update(int(existing["id"]), fields, datetime.now(UTC))
            except pg_errors.UniqueViolation:
                logger.warning(
                    "Slug %s claimed concurrently, retrying (attempt %d/%d)", new_slug, attempt, attempts
                )
                continue
            if event is None:
                raise NotFoundError(detail="Event not found", slug=slug)
            logger.info("Updated event id=%s slug=%s", event["id"], event["slug"])
            return event
    raise ConflictError(detail="Could not allocate a unique slug", slug=new_slug)


async def find_event_by_slug(slug: str) -> dict[str, Any] | None:
    with storage_errors("find_event_by_slug"):
        return await db.event_get_by_slug(slug)


async def get_event_by_slug(slug: str) -> dict[str, Any]:
    event = await find_event_by_slug(slug)
    if event is None:
        raise NotFoundError(detail="Event not found", slug=slug)
    return event


async def list_events() -> list[dict[str, Any]]:
    with storage_errors("list_events"):
        return await db.event_list()


async def similar_events(slug: str) -> list[dict[str, Any]]:
    """Up to ``similar_limit`` other events sharing a tag with ``slug``'s event.

    Unknown slugs and storage failures yield an empty list.
    """
    limit = get_settings().events.similar_limit
    try:
        anchor = await db.event_get_by_slug(slug)
        if anchor is None:
            return []
        events = await db.event_similar(int(anchor["id"]), anchor["tags"], limit)
    except (psycopg.Error, APIError) as e:
        logger.error("Error fetching similar events for %s: %s", slug, e)
        return []
    return [event for event in events if event["id"] != anchor["id"]][:limit]


async def delete_event(slug: str) -> None:
    """Delete an event. Events that still have bookings are kept."""
    with storage_errors("delete_event"):
        event = await db.event_get_by_slug(slug)
        if event is None:
            raise NotFoundError(detail="Event not found", slug=slug)
        event_id = int(event["id"])
        if await db.event_delete_unbooked(event_id):
            logger.info("Deleted event id=%s slug=%s", event_id, slug)
            return
        bookings = await db.booking_count_for_event(event_id)
    if bookings:
        raise ConflictError(detail="Event has bookings and cannot be deleted", slug=slug, bookings=bookings)
    raise NotFoundError(detail="Event not found", slug=slug)
