from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

REQUIRED_TEXT_FIELDS = (
    "title",
    "description",
    "overview",
    "image",
    "venue",
    "location",
    "date",
    "time",
    "mode",
    "audience",
    "organizer",
)
LIST_FIELDS = ("agenda", "tags")
WRITABLE_FIELDS = REQUIRED_TEXT_FIELDS + LIST_FIELDS


def field_label(name: str) -> str:
    return name.capitalize()


class EventFields(BaseModel):
    """Every user-supplied event field, validated on each write."""

    model_config = ConfigDict(extra="ignore")

    title: str
    description: str
    overview: str
    image: str
    venue: str
    location: str
    date: str
    time: str
    mode: str
    audience: str
    agenda: list[str]
    organizer: str
    tags: list[str]

    @field_validator(*REQUIRED_TEXT_FIELDS)
    @classmethod
    def validate_not_blank(cls, v: str, info: ValidationInfo) -> str:
        v = v.strip()
        if not v:
            raise ValueError(f"{field_label(info.field_name)} cannot be empty")
        return v

    @field_validator(*LIST_FIELDS)
    @classmethod
    def validate_not_empty(cls, v: list[str], info: ValidationInfo) -> list[str]:
        if not v:
            raise ValueError(f"{field_label(info.field_name)} must be a non-empty list")
        return v


def _clean_list_item(item: Any) -> str:
    return str(item).replace("[", "").replace("]", "").replace('"', "").replace("'", "").strip()


class EventWriteRequest(BaseModel):
    """Request body for creating or patching an event.

    Fields are optional here so that missing and blank values are reported
    together by the write path. ``agenda`` and ``tags`` accept a list or a
    comma-separated string.
    """

    title: str | None = None
    description: str | None = None
    overview: str | None = None
    image: str | None = None
    venue: str | None = None
    location: str | None = None
    date: str | None = None
    time: str | None = None
    mode: str | None = None
    audience: str | None = None
    agenda: list[str] | None = None
    organizer: str | None = None
    tags: list[str] | None = None

    @field_validator("agenda", "tags", mode="before")
    @classmethod
    def split_list(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, tuple)):
            cleaned = (_clean_list_item(item) for item in v)
            return [item for item in cleaned if item]
        return v


class Event(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    slug: str
    description: str
    overview: str
    image: str
    venue: str
    location: str
    date: str
    time: str
    mode: str
    audience: str
    agenda: list[str]
    organizer: str
    tags: list[str]
    created_at: str
    updated_at: str


class EventResponse(BaseModel):
    message: str
    event: Event


class EventsListResponse(BaseModel):
    message: str
    events: list[Event]


class SimilarEventsResponse(BaseModel):
    events: list[Event]


class EventDetailResponse(EventResponse):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    booking_count: int
