"""Room and event store contract.

The core never touches storage directly; it goes through a TripStore. The
key-value implementation keeps each piece of state as an independent JSON
blob, using the same keys as the browser version of the planner:

- ``travelRooms``: array of rooms
- ``currentRoomId``: id of the active room
- ``events_{roomId}_day_{day}``: array of events for one day
"""

import logging
from abc import ABC, abstractmethod

from pydantic import TypeAdapter

from .models import Event, Room

logger = logging.getLogger(__name__)

ROOMS_KEY = "travelRooms"
CURRENT_ROOM_KEY = "currentRoomId"

_rooms_adapter = TypeAdapter(list[Room])
_events_adapter = TypeAdapter(list[Event])


def events_key(room_id: str, day: int) -> str:
    """Storage key of one day's event list."""
    return f"events_{room_id}_day_{day}"


class TripStore(ABC):
    """Read/write interface to rooms, per-day event lists and the current room."""

    @abstractmethod
    def list_rooms(self) -> list[Room]:
        """All stored rooms."""

    @abstractmethod
    def get_room(self, room_id: str) -> Room | None:
        """A room by id, or None."""

    @abstractmethod
    def put_room(self, room: Room) -> None:
        """Create a room or replace it entirely."""

    @abstractmethod
    def get_events(self, room_id: str, day: int) -> list[Event]:
        """One day's events in stored order; empty if none were saved."""

    @abstractmethod
    def put_events(self, room_id: str, day: int, events: list[Event]) -> None:
        """Replace one day's event list."""

    @abstractmethod
    def get_current_room_id(self) -> str | None:
        """Id of the active room, or None."""

    @abstractmethod
    def set_current_room_id(self, room_id: str | None) -> None:
        """Set (or clear, with None) the active room."""


class KeyValueTripStore(TripStore):
    """TripStore over string blobs; subclasses provide ``_read``/``_write``."""

    @abstractmethod
    def _read(self, key: str) -> str | None:
        """Raw value for a key, or None."""

    @abstractmethod
    def _write(self, key: str, value: str) -> None:
        """Store a raw value."""

    def list_rooms(self) -> list[Room]:
        raw = self._read(ROOMS_KEY)
        if not raw:
            return []
        return _rooms_adapter.validate_json(raw)

    def get_room(self, room_id: str) -> Room | None:
        for room in self.list_rooms():
            if room.id == room_id:
                return room
        return None

    def put_room(self, room: Room) -> None:
        rooms = self.list_rooms()
        replaced = False
        for idx, existing in enumerate(rooms):
            if existing.id == room.id:
                rooms[idx] = room
                replaced = True
                break
        if not replaced:
            rooms.append(room)

        self._write(ROOMS_KEY, _rooms_adapter.dump_json(rooms, by_alias=True).decode())
        logger.debug(f"{'Updated' if replaced else 'Created'} room {room.id}")

    def get_events(self, room_id: str, day: int) -> list[Event]:
        raw = self._read(events_key(room_id, day))
        if not raw:
            return []
        return _events_adapter.validate_json(raw)

    def put_events(self, room_id: str, day: int, events: list[Event]) -> None:
        self._write(
            events_key(room_id, day),
            _events_adapter.dump_json(events, by_alias=True).decode(),
        )
        logger.debug(f"Saved {len(events)} events for room {room_id} day {day}")

    def get_current_room_id(self) -> str | None:
        # The browser version clears the pointer by writing an empty string
        return self._read(CURRENT_ROOM_KEY) or None

    def set_current_room_id(self, room_id: str | None) -> None:
        self._write(CURRENT_ROOM_KEY, room_id or "")


class InMemoryStore(KeyValueTripStore):
    """Store that keeps blobs in a dict. Nothing survives the process."""

    def __init__(self):
        """Initialize an empty store."""
        self.blobs: dict[str, str] = {}

    def _read(self, key: str) -> str | None:
        return self.blobs.get(key)

    def _write(self, key: str, value: str) -> None:
        self.blobs[key] = value
