import logging

from fastapi import APIRouter, Response

from devevent.models.events import (
    Event,
    EventDetailResponse,
    EventResponse,
    EventsListResponse,
    EventWriteRequest,
    SimilarEventsResponse,
)
from devevent.services import bookings as booking_service
from devevent.services import events as event_service

logger = logging.getLogger("devevent.events")
router = APIRouter(prefix="/events", tags=["events"])


@router.post("", status_code=201, response_model=EventResponse)
async def create_event(req: EventWriteRequest) -> EventResponse:
    logger.info("POST /events title=%s", req.title)
    event = await event_service.create_event(req.model_dump(exclude_none=True))
    return EventResponse(message="Event created successfully", event=Event(**event))


@router.get("", response_model=EventsListResponse)
async def list_events() -> EventsListResponse:
    events = await event_service.list_events()
    return EventsListResponse(
        message="Events fetched successfully",
        events=[Event(**event) for event in events],
    )


@router.get("/{slug}", response_model=EventDetailResponse)
async def get_event(slug: str) -> EventDetailResponse:
    event = await event_service.get_event_by_slug(slug)
    booking_count = await booking_service.count_bookings(int(event["id"]))
    return EventDetailResponse(
        message="Event fetched successfully",
        event=Event(**event),
        booking_count=booking_count,
    )


@router.patch("/{slug}", response_model=EventResponse)
async def update_event(slug: str, req: EventWriteRequest) -> EventResponse:
    logger.info("PATCH /events/%s", slug)
    event = await event_service.update_event(slug, req.model_dump(exclude_unset=True, exclude_none=True))
    return EventResponse(message="Event updated successfully", event=Event(**event))


@router.delete("/{slug}", status_code=204)
async def delete_event(slug: str) -> Response:
    logger.info("DELETE /events/%s", slug)
    await event_service.delete_event(slug)
    return Response(status_code=204)


@router.get("/{slug}/similar", response_model=SimilarEventsResponse)
async def get_similar_events(slug: str) -> SimilarEventsResponse:
    events = await event_service.similar_events(slug)
    return SimilarEventsResponse(events=[Event(**event) for event in events])
