"""Unique slug allocation for events."""

import logging
import string
import time
from collections.abc import Awaitable, Callable

from devevent.normalize import slugify

logger = logging.getLogger(__name__)

SlugExists = Callable[[str, int | None], Awaitable[bool]]

_BASE36_DIGITS = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def fallback_slug() -> str:
    """Slug for titles with no usable characters, seeded by the current time."""
    return f"untitled-{_to_base36(int(time.time() * 1000))}"


async def allocate_slug(
    title: str,
    exists: SlugExists,
    exclude_id: int | None = None,
) -> str:
    """Return a slug for ``title`` that ``exists`` reports as free.

    Candidates are tried in order ``base``, ``base-1``, ``base-2``, ...
    ``exclude_id`` is passed through so an event being updated does not
    collide with its own current slug.

    The result is only unique at the time of the check; writers must still
    handle a unique violation on insert.
    """
    base = slugify(title) or fallback_slug()
    candidate = base
    suffix = 1
    while await exists(candidate, exclude_id):
        candidate = f"{base}-{suffix}"
        suffix += 1
    if candidate != base:
        logger.info("Slug %s taken, allocated %s", base, candidate)
    return candidate
