"""Text normalization for event titles, dates and times.

None of these functions raise on bad input: they fall back to the trimmed
original value.
"""

import re
from datetime import UTC, datetime

from dateutil import parser as dateparser

_NON_SLUG_CHARS_RE = re.compile(r"[^\w\s-]", re.ASCII)
_SEPARATOR_RUN_RE = re.compile(r"[\s_-]+")
_EDGE_HYPHENS_RE = re.compile(r"^-+|-+$")

TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
STRICT_TIME_RE = re.compile(r"^(?:[01]\d|2[0-3]):[0-5]\d$")
ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Two defaults differing only in year reveal whether the input named one.
_DEFAULT_DAY = datetime(2000, 1, 1)
_OTHER_YEAR = datetime(2001, 1, 1)


def slugify(title: str) -> str:
    """Turn a title into a slug candidate. May return an empty string."""
    slug = title.lower().strip()
    slug = _NON_SLUG_CHARS_RE.sub("", slug)
    slug = _SEPARATOR_RUN_RE.sub("-", slug)
    return _EDGE_HYPHENS_RE.sub("", slug)


def normalize_date(value: str) -> str:
    """Return ``value`` as ``YYYY-MM-DD`` when it parses as a date.

    A missing month or day resolves to the first, never to today; input
    without a year is not a date. Timezone-aware inputs are converted to UTC
    before the calendar day is taken. Anything else comes back trimmed and
    otherwise untouched.
    """
    trimmed = value.strip()
    if not trimmed:
        return trimmed
    try:
        if ISO_DATE_RE.match(trimmed):
            return dateparser.isoparse(trimmed).date().isoformat()
        parsed = dateparser.parse(trimmed, default=_DEFAULT_DAY)
        if parsed.year != dateparser.parse(trimmed, default=_OTHER_YEAR).year:
            return trimmed
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(UTC)
        return parsed.date().isoformat()
    except (ValueError, OverflowError):
        return trimmed


def normalize_time(value: str) -> str:
    """Return ``H:MM``/``HH:MM[:SS]`` input as zero-padded ``HH:MM``.

    Seconds are dropped. Input that does not match is returned trimmed.
    """
    trimmed = value.strip()
    match = TIME_RE.match(trimmed)
    if not match:
        return trimmed
    hours, minutes = match.group(1), match.group(2)
    return f"{hours.zfill(2)}:{minutes}"


def is_valid_time(value: str) -> bool:
    """True when ``value`` is a 24-hour ``HH:MM`` time."""
    return bool(STRICT_TIME_RE.match(value))
