"""Tests for the room/event store implementations."""

import json
from datetime import datetime, timezone

import pytest

from trip_split.db import Database
from trip_split.models import Event, EventColor, Member, Room
from trip_split.store import CURRENT_ROOM_KEY, ROOMS_KEY, InMemoryStore, events_key


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each store implementation."""
    if request.param == "memory":
        yield InMemoryStore()
    else:
        db = Database(tmp_path / "test.db")
        yield db
        db.close()


@pytest.fixture
def room():
    """A sample room."""
    return Room(
        id="ABC123",
        password="PW0001",
        name="Tokyo Trip",
        days=3,
        members=[Member(id="1", name="Akihiro"), Member(id="2", name="Chihiro")],
        created=datetime(2025, 3, 1, 10, 0, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def events():
    """Two events for one day."""
    return [
        Event(
            id="1700000000000",
            subject="Sushi",
            start_time="12:00",
            end_time="13:30",
            paid_by="1",
            amount=9000,
            url="https://example.com/sushi",
            color=EventColor.BLUE,
        ),
        Event(
            id="1700000000001",
            subject="Walk",
            start_time="14:00",
            end_time="15:00",
            paid_by="free",
        ),
    ]


class TestRooms:
    """Room operations."""

    def test_missing_room_returns_none(self, store):
        assert store.get_room("NOPE") is None
        assert store.list_rooms() == []

    def test_put_and_get(self, store, room):
        store.put_room(room)

        assert store.get_room("ABC123") == room

    def test_put_replaces_whole_room(self, store, room):
        store.put_room(room)
        renamed = room.model_copy(update={"name": "Osaka Trip", "days": 2})

        store.put_room(renamed)

        assert store.get_room("ABC123") == renamed
        assert len(store.list_rooms()) == 1

    def test_multiple_rooms_keep_order(self, store, room):
        other = room.model_copy(update={"id": "XYZ999"})

        store.put_room(room)
        store.put_room(other)

        assert [r.id for r in store.list_rooms()] == ["ABC123", "XYZ999"]


class TestEvents:
    """Event list operations."""

    def test_missing_day_is_empty(self, store):
        assert store.get_events("ABC123", 1) == []

    def test_round_trip_is_verbatim(self, store, events):
        store.put_events("ABC123", 1, events)

        assert store.get_events("ABC123", 1) == events

    def test_writing_same_list_twice_is_idempotent(self, store, events):
        store.put_events("ABC123", 1, events)
        first = store.get_events("ABC123", 1)
        store.put_events("ABC123", 1, first)

        assert store.get_events("ABC123", 1) == first == events

    def test_days_are_independent(self, store, events):
        store.put_events("ABC123", 1, events)
        store.put_events("ABC123", 2, events[:1])

        assert len(store.get_events("ABC123", 1)) == 2
        assert len(store.get_events("ABC123", 2)) == 1
        assert store.get_events("ABC123", 3) == []

    def test_replace_with_empty_list(self, store, events):
        store.put_events("ABC123", 1, events)
        store.put_events("ABC123", 1, [])

        assert store.get_events("ABC123", 1) == []


class TestCurrentRoom:
    """Current-room pointer."""

    def test_unset_by_default(self, store):
        assert store.get_current_room_id() is None

    def test_set_and_clear(self, store):
        store.set_current_room_id("ABC123")
        assert store.get_current_room_id() == "ABC123"

        store.set_current_room_id(None)
        assert store.get_current_room_id() is None


class TestBlobLayout:
    """The key-value layout matches the browser version's localStorage."""

    def test_keys_and_camel_case_fields(self, room, events):
        store = InMemoryStore()

        store.put_room(room)
        store.put_events(room.id, 2, events)
        store.set_current_room_id(room.id)

        assert set(store.blobs) == {ROOMS_KEY, CURRENT_ROOM_KEY, "events_ABC123_day_2"}
        assert events_key("ABC123", 2) == "events_ABC123_day_2"
        assert store.blobs[CURRENT_ROOM_KEY] == "ABC123"

        stored = json.loads(store.blobs["events_ABC123_day_2"])
        assert stored[0]["startTime"] == "12:00"
        assert stored[0]["endTime"] == "13:30"
        assert stored[0]["paidBy"] == "1"
        assert stored[0]["color"] == "bg-blue-300"

    def test_loads_browser_blobs(self):
        """Rooms saved with a millisecond timestamp and cleared pointer load."""
        store = InMemoryStore()
        store.blobs[ROOMS_KEY] = json.dumps(
            [
                {
                    "id": "QW12ER",
                    "password": "ZX34CV",
                    "name": "Tokyo Trip",
                    "days": 3,
                    "members": [{"id": "1", "name": "アキヒロ"}],
                    "created": 1700000000000,
                }
            ]
        )
        store.blobs[CURRENT_ROOM_KEY] = ""
        store.blobs["events_QW12ER_day_1"] = json.dumps(
            [
                {
                    "id": "1700000000000",
                    "subject": "Temple",
                    "startTime": "09:00",
                    "endTime": "10:00",
                    "paidBy": "1",
                    "amount": 500,
                    "url": "",
                    "color": "bg-green-300",
                }
            ]
        )

        room = store.get_room("QW12ER")
        assert room is not None
        assert room.created.year == 2023
        assert room.members[0].name == "アキヒロ"
        assert store.get_current_room_id() is None
        assert store.get_events("QW12ER", 1)[0].color == EventColor.GREEN

    def test_written_back_rooms_keep_browser_format(self):
        """Saving a loaded room keeps `created` in epoch milliseconds."""
        store = InMemoryStore()
        store.blobs[ROOMS_KEY] = json.dumps(
            [
                {
                    "id": "QW12ER",
                    "password": "ZX34CV",
                    "name": "Tokyo Trip",
                    "days": 3,
                    "members": [{"id": "1", "name": "Aki"}],
                    "created": 1700000000123,
                }
            ]
        )

        store.put_room(store.get_room("QW12ER"))

        stored = json.loads(store.blobs[ROOMS_KEY])
        assert stored == [
            {
                "id": "QW12ER",
                "password": "ZX34CV",
                "name": "Tokyo Trip",
                "days": 3,
                "members": [{"id": "1", "name": "Aki"}],
                "created": 1700000000123,
            }
        ]


class TestDatabase:
    """SQLite-specific behavior."""

    def test_persists_across_connections(self, tmp_path, room, events):
        db_path = tmp_path / "trip.db"
        with Database(db_path) as db:
            db.put_room(room)
            db.put_events(room.id, 1, events)
            db.set_current_room_id(room.id)

        with Database(db_path) as db:
            assert db.get_room(room.id) == room
            assert db.get_events(room.id, 1) == events
            assert db.get_current_room_id() == room.id

    def test_upsert_keeps_one_row_per_key(self, tmp_path, events):
        with Database(tmp_path / "trip.db") as db:
            db.put_events("R", 1, events)
            db.put_events("R", 1, events[:1])

            assert db.keys() == ["events_R_day_1"]
            assert db.get_events("R", 1) == events[:1]
