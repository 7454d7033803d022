"""Service layer that composes the store, the splitter and the time grid.

Each mutation reads a whole list from the store, transforms it and writes the
whole list back.
"""

import logging
import random
import string
import time
from collections import Counter
from collections.abc import Collection, Iterable
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .config import Settings
from .exceptions import (
    AuthenticationError,
    EventNotFoundError,
    NotFoundError,
    ReferentialError,
    RoomNotFoundError,
    ValidationError,
)
from .ledger import compute_balances, merge_events, summarize_expenses
from .models import (
    FREE_PAYER,
    NO_PAYER,
    BalanceReport,
    Event,
    EventColor,
    EventDraft,
    ExpenseSummary,
    GridSlot,
    Member,
    RemainderPolicy,
    Room,
    SplitPolicy,
)
from .store import TripStore
from .timegrid import build_grid, parse_time

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = set(EventDraft.model_fields)


def generate_random_id(length: int = 6) -> str:
    """Random id made of uppercase letters and digits."""
    chars = string.ascii_uppercase + string.digits
    return "".join(random.choices(chars, k=length))


def _duplicate_ids(members: list[Member]) -> set[str]:
    counts = Counter(member.id for member in members)
    return {member_id for member_id, count in counts.items() if count > 1}


def validate_room(
    room: Room, max_days: int, known_duplicates: Collection[str] = ()
) -> None:
    """
    Check room settings before they are saved.

    Rooms saved by the browser version can already hold repeated member ids;
    those listed in ``known_duplicates`` are tolerated, any new repeat is not.

    Raises:
        ValidationError: If the name, day count or member list is invalid
    """
    if not room.name.strip():
        raise ValidationError("Please enter a trip name")
    if not 1 <= room.days <= max_days:
        raise ValidationError(f"Number of days must be between 1 and {max_days}")
    if not room.members:
        raise ValidationError("You need at least one member in the room")
    if any(not member.name.strip() for member in room.members):
        raise ValidationError("All members must have a name")
    if _duplicate_ids(room.members) - set(known_duplicates):
        raise ValidationError("Member ids must be unique")


def validate_event(event: Event, room: Room) -> None:
    """
    Check an event before it is saved.

    Raises:
        ValidationError: If the subject, payer, times or amount are invalid
        ReferentialError: If the payer is not a member of the room
    """
    if not event.subject.strip():
        raise ValidationError("Please enter a subject for the event")

    if event.paid_by == NO_PAYER:
        raise ValidationError("Please select who is paying for this event")
    if event.paid_by != FREE_PAYER and room.find_member(event.paid_by) is None:
        raise ReferentialError(event.paid_by, room.id)

    start = parse_time(event.start_time)
    end = parse_time(event.end_time, allow_end_of_day=True)
    if end <= start:
        raise ValidationError(
            f"End time {event.end_time} must be after start time {event.start_time}"
        )

    if event.amount < 0:
        raise ValidationError("Amount cannot be negative")


def _next_member_id(members: list[Member]) -> str:
    numeric = [int(member.id) for member in members if member.id.isdigit()]
    return str(max(numeric, default=0) + 1)


class TripService:
    """Rooms, events and balance views on top of a TripStore."""

    def __init__(self, settings: Settings, store: TripStore):
        """Initialize the trip service."""
        self.settings = settings
        self.store = store

    # ========================================================================
    # Rooms
    # ========================================================================

    def create_room(self, name: str, days: int, member_names: list[str]) -> Room:
        """
        Create a room with a generated id and password and make it current.

        Args:
            name: Trip name
            days: Number of days in the trip
            member_names: Member names in display order

        Returns:
            The stored room
        """
        existing_ids = {room.id for room in self.store.list_rooms()}
        while True:
            room_id = generate_random_id(self.settings.room_id_length)
            if room_id not in existing_ids:
                break

        room = Room(
            id=room_id,
            password=generate_random_id(self.settings.room_id_length),
            name=name.strip(),
            days=days,
            members=[
                Member(id=str(idx), name=member_name.strip())
                for idx, member_name in enumerate(member_names, start=1)
            ],
        )
        validate_room(room, self.settings.max_days)

        self.store.put_room(room)
        for day in range(1, room.days + 1):
            self.store.put_events(room.id, day, [])
        self.store.set_current_room_id(room.id)

        logger.info(
            f"Created room {room.id} '{room.name}' "
            f"({room.days} days, {len(room.members)} members)"
        )
        return room

    def get_room(self, room_id: str) -> Room:
        """A room by id; raises RoomNotFoundError if it does not exist."""
        room = self.store.get_room(room_id)
        if room is None:
            raise RoomNotFoundError(room_id)
        return room

    def update_room(
        self,
        room_id: str,
        name: str | None = None,
        days: int | None = None,
        add_members: Iterable[str] = (),
        rename_members: dict[str, str] | None = None,
        remove_members: Iterable[str] = (),
    ) -> Room:
        """
        Edit room settings.

        Removed members stay referenced by existing events; those events show
        an unknown payer and no longer count toward balances.

        Returns:
            The updated room
        """
        room = self.get_room(room_id)
        members = list(room.members)

        for member_id, new_name in (rename_members or {}).items():
            if not any(m.id == member_id for m in members):
                raise NotFoundError(f"Member {member_id} not found in room {room_id}")
            members = [
                Member(id=m.id, name=new_name.strip()) if m.id == member_id else m
                for m in members
            ]

        for member_id in remove_members:
            if not any(m.id == member_id for m in members):
                raise NotFoundError(f"Member {member_id} not found in room {room_id}")
            if len(members) <= 1:
                raise ValidationError("You need at least one member in the room")
            members = [m for m in members if m.id != member_id]

        for member_name in add_members:
            members.append(
                Member(id=_next_member_id(members), name=member_name.strip())
            )

        updated = room.model_copy(
            update={
                "name": room.name if name is None else name.strip(),
                "days": room.days if days is None else days,
                "members": members,
            }
        )
        validate_room(
            updated, self.settings.max_days, _duplicate_ids(room.members)
        )

        if updated.days < room.days:
            logger.info(
                f"Room {room_id} shortened to {updated.days} days; "
                f"events on later days are kept but hidden"
            )

        self.store.put_room(updated)
        logger.info(f"Updated room {room_id}")
        return updated

    def login(self, room_id: str, password: str) -> Room:
        """
        Enter a room by id and password and make it current.

        The password is a plain string match, not a security boundary.
        """
        room = self.store.get_room(room_id.strip())
        if room is None or room.password != password:
            logger.info(f"Login failed for room '{room_id}'")
            raise AuthenticationError("Invalid room ID or password")

        self.store.set_current_room_id(room.id)
        logger.info(f"Logged in to room {room.id}")
        return room

    def logout(self) -> None:
        """Clear the current room pointer."""
        self.store.set_current_room_id(None)

    def current_room(self) -> Room:
        """The active room; raises RoomNotFoundError if none is set or it is gone."""
        room_id = self.store.get_current_room_id()
        if not room_id:
            raise RoomNotFoundError(None)
        return self.get_room(room_id)

    def check_day(self, room: Room, day: int) -> None:
        """Raise NotFoundError if ``day`` is outside the room's trip."""
        if not 1 <= day <= room.days:
            raise NotFoundError(f"Day {day} is outside this trip (1-{room.days})")

    # ========================================================================
    # Events
    # ========================================================================

    def _room_and_events(self, day: int) -> tuple[Room, list[Event]]:
        room = self.current_room()
        self.check_day(room, day)
        return room, self.store.get_events(room.id, day)

    def list_events(self, day: int) -> list[Event]:
        """The current room's events for a day, in stored order."""
        _room, events = self._room_and_events(day)
        return events

    def add_event(self, day: int, draft: EventDraft) -> Event:
        """
        Validate a new event, assign it an id and append it to the day.

        Returns:
            The stored event
        """
        room, events = self._room_and_events(day)

        existing_ids = {event.id for event in events}
        timestamp = int(time.time() * 1000)
        while str(timestamp) in existing_ids:
            timestamp += 1

        fields = draft.model_dump(exclude={"color"})
        event = Event(
            id=str(timestamp),
            color=draft.color or random.choice(list(EventColor)),
            **fields,
        )
        validate_event(event, room)

        self.store.put_events(room.id, day, [*events, event])
        logger.info(f"Added event {event.id} '{event.subject}' to day {day}")
        return event

    def update_event(self, day: int, event_id: str, changes: dict[str, Any]) -> Event:
        """
        Apply field changes to one event, keeping its id and position.

        Args:
            day: Day of the trip
            event_id: Id of the event to edit
            changes: Field name (snake_case) to new value

        Returns:
            The updated event
        """
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown event fields: {', '.join(sorted(unknown))}")

        room, events = self._room_and_events(day)

        for idx, event in enumerate(events):
            if event.id == event_id:
                break
        else:
            raise EventNotFoundError(event_id, day)

        merged = {**event.model_dump(), **changes, "id": event.id}
        if merged.get("color") is None:
            merged["color"] = event.color
        try:
            updated = Event.model_validate(merged)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid event data: {e}") from e
        validate_event(updated, room)

        events[idx] = updated
        self.store.put_events(room.id, day, events)
        logger.info(f"Updated event {event_id} on day {day}")
        return updated

    def delete_event(self, day: int, event_id: str) -> Event:
        """Remove one event from a day and return it."""
        room, events = self._room_and_events(day)

        remaining = [event for event in events if event.id != event_id]
        if len(remaining) == len(events):
            raise EventNotFoundError(event_id, day)

        removed = next(event for event in events if event.id == event_id)
        self.store.put_events(room.id, day, remaining)
        logger.info(f"Deleted event {event_id} from day {day}")
        return removed

    # ========================================================================
    # Views
    # ========================================================================

    def day_grid(self, day: int) -> list[GridSlot]:
        """The day's events laid out on the 30-minute grid."""
        return build_grid(self.list_events(day))

    def day_summary(self, day: int) -> ExpenseSummary:
        """Expense summary for one day of the current room."""
        room, events = self._room_and_events(day)
        return summarize_expenses(room.members, events)

    def day_balances(
        self,
        day: int,
        policy: SplitPolicy | None = None,
        remainder_policy: RemainderPolicy | None = None,
    ) -> BalanceReport:
        """Balances for one day; policies default to the configured ones."""
        room, events = self._room_and_events(day)
        return compute_balances(
            room.members,
            events,
            policy or self.settings.split_policy,
            remainder_policy or self.settings.remainder_policy,
        )

    def trip_balances(
        self,
        policy: SplitPolicy | None = None,
        remainder_policy: RemainderPolicy | None = None,
    ) -> BalanceReport:
        """Balances over every day of the current room."""
        room = self.current_room()
        events = merge_events(
            self.store.get_events(room.id, day) for day in range(1, room.days + 1)
        )
        return compute_balances(
            room.members,
            events,
            policy or self.settings.split_policy,
            remainder_policy or self.settings.remainder_policy,
        )
