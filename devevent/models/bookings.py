from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BookingCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_id: str | int | None = Field(default=None, alias="eventId")
    email: str | None = None


class Booking(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    event_id: str
    email: str
    created_at: str
    updated_at: str


class BookingResponse(BaseModel):
    message: str
    booking: Booking


class BookingsListResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    event_slug: str
    bookings: list[Booking]
    total: int
