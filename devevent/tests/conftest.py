import copy
from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient
from psycopg import errors as pg_errors

from devevent.config import clear_settings_cache


@pytest.fixture(autouse=True)
def _fresh_settings():
    clear_settings_cache()
    yield
    clear_settings_cache()


class FakeDatabase:
    """In-memory stand-in for the ``devevent.db`` repository functions.

    Mirrors the storage guarantees the services rely on: a unique slug
    constraint, newest-first listing and tag-overlap similarity.
    ``rival_inserts`` and ``rival_updates`` make the next N inserts or updates
    lose a race: another writer takes the slug right before the row is
    written.
    """

    def __init__(self):
        self.events: dict[int, dict] = {}
        self.bookings: list[dict] = []
        self.rival_inserts = 0
        self.rival_updates = 0
        self._next_event_id = 1
        self._next_booking_id = 1

    def _slug_taken(self, slug, exclude_id=None):
        return any(
            e["slug"] == slug and int(e["id"]) != exclude_id for e in self.events.values()
        )

    def _store(self, fields, now):
        event_id = self._next_event_id
        self._next_event_id += 1
        event = {"id": str(event_id), **copy.deepcopy(fields)}
        event["created_at"] = event["updated_at"] = now.isoformat()
        self.events[event_id] = event
        return event

    def seed_event(self, **overrides):
        fields = {
            "title": "Seeded Event",
            "slug": "seeded-event",
            "description": "d",
            "overview": "o",
            "image": "https://img.example.com/x.png",
            "venue": "v",
            "location": "l",
            "date": "2025-01-01",
            "time": "10:00",
            "mode": "online",
            "audience": "devs",
            "agenda": ["Opening"],
            "organizer": "org",
            "tags": ["python"],
        }
        fields.update(overrides)
        return copy.deepcopy(self._store(fields, datetime.now(UTC)))

    async def event_slug_exists(self, slug, exclude_id=None):
        return self._slug_taken(slug, exclude_id)

    async def event_insert(self, fields, now):
        if self.rival_inserts:
            self.rival_inserts -= 1
            self._store({**fields, "title": "rival"}, now)
        if self._slug_taken(fields["slug"]):
            raise pg_errors.UniqueViolation('duplicate key value violates unique constraint "ux_events_slug"')
        return copy.deepcopy(self._store(fields, now))

    async def event_update(self, event_id, fields, now):
        if event_id not in self.events:
            return None
        if self.rival_updates:
            self.rival_updates -= 1
            self._store({**fields, "title": "rival"}, now)
        if self._slug_taken(fields["slug"], event_id):
            raise pg_errors.UniqueViolation('duplicate key value violates unique constraint "ux_events_slug"')
        self.events[event_id].update(copy.deepcopy(fields))
        self.events[event_id]["updated_at"] = now.isoformat()
        return copy.deepcopy(self.events[event_id])

    async def event_get_by_slug(self, slug):
        for event in self.events.values():
            if event["slug"] == slug:
                return copy.deepcopy(event)
        return None

    async def event_get_by_id(self, event_id):
        event = self.events.get(event_id)
        return copy.deepcopy(event) if event else None

    async def event_list(self):
        ordered = sorted(
            self.events.values(), key=lambda e: (e["created_at"], int(e["id"])), reverse=True
        )
        return copy.deepcopy(ordered)

    async def event_similar(self, event_id, tags, limit):
        matches = [
            e for e in self.events.values()
            if int(e["id"]) != event_id and set(e["tags"]) & set(tags)
        ]
        return copy.deepcopy(matches[:limit])

    async def event_delete_unbooked(self, event_id):
        if event_id not in self.events:
            return False
        if any(int(b["event_id"]) == event_id for b in self.bookings):
            return False
        del self.events[event_id]
        return True

    async def booking_insert(self, event_id, email, now):
        booking = {
            "id": str(self._next_booking_id),
            "event_id": str(event_id),
            "email": email,
            "created_at": now.isoformat(),
            "updated_at": now.isoformat(),
        }
        self._next_booking_id += 1
        self.bookings.append(booking)
        return dict(booking)

    async def booking_insert_many(self, event_id, emails, now):
        return [await self.booking_insert(event_id, email, now) for email in emails]

    async def booking_list_for_event(self, event_id):
        return [dict(b) for b in reversed(self.bookings) if int(b["event_id"]) == event_id]

    async def booking_count_for_event(self, event_id):
        return sum(1 for b in self.bookings if int(b["event_id"]) == event_id)


@pytest.fixture
def fake_db():
    fake = FakeDatabase()
    with patch("devevent.services.events.db", fake), patch("devevent.services.bookings.db", fake):
        yield fake


@pytest.fixture
def event_payload():
    return {
        "title": "React Conf 2025",
        "description": "Two days of React talks.",
        "overview": "The yearly React conference.",
        "image": "https://img.example.com/react.png",
        "venue": "Convention Center",
        "location": "Henderson, NV",
        "date": "2025-05-15",
        "time": "9:00",
        "mode": "hybrid",
        "audience": "Frontend developers",
        "agenda": ["Opening", "Keynote"],
        "organizer": "Meta",
        "tags": ["react", "javascript"],
    }


@pytest.fixture
def client(fake_db):
    with patch("devevent.lifespan.db.init_pool", AsyncMock()), patch(
        "devevent.lifespan.db.close_pool", AsyncMock()
    ):
        from devevent.main import app

        with TestClient(app, raise_server_exceptions=False) as c:
            yield c
