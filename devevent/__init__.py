"""DevEvent: developer event publishing and bookings service."""
