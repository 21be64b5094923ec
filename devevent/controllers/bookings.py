import logging

from fastapi import APIRouter

from devevent.models.bookings import (
    Booking,
    BookingCreateRequest,
    BookingResponse,
    BookingsListResponse,
)
from devevent.services import bookings as booking_service

logger = logging.getLogger("devevent.bookings")
router = APIRouter(tags=["bookings"])


@router.post("/bookings", status_code=201, response_model=BookingResponse)
async def create_booking(req: BookingCreateRequest) -> BookingResponse:
    logger.info("POST /bookings event_id=%s", req.event_id)
    booking = await booking_service.create_booking(req.event_id, req.email)
    return BookingResponse(message="Booking created successfully", booking=Booking(**booking))


@router.get("/events/{slug}/bookings", response_model=BookingsListResponse)
async def list_event_bookings(slug: str) -> BookingsListResponse:
    bookings = await booking_service.list_bookings_for_event(slug)
    return BookingsListResponse(
        event_slug=slug,
        bookings=[Booking(**booking) for booking in bookings],
        total=len(bookings),
    )
