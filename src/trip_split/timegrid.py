"""Fixed-resolution time grid for laying out a day's events."""

import logging
import math
import re

from .exceptions import ValidationError
from .models import Event, GridSlot, PlacedEvent

logger = logging.getLogger(__name__)

SLOT_MINUTES = 30
SLOTS_PER_DAY = 48  # 00:00 - 24:00
MINUTES_PER_DAY = SLOT_MINUTES * SLOTS_PER_DAY

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time(value: str, allow_end_of_day: bool = False) -> int:
    """
    Parse an "HH:MM" string into minutes since midnight.

    Args:
        value: 24-hour time string
        allow_end_of_day: Accept "24:00" (used for end times)

    Returns:
        Minutes since midnight

    Raises:
        ValidationError: If the string is not a valid time of day
    """
    match = _TIME_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValidationError(f"Invalid time '{value}': expected HH:MM")

    hour, minute = int(match.group(1)), int(match.group(2))
    if allow_end_of_day and hour == 24 and minute == 0:
        return MINUTES_PER_DAY
    if hour > 23 or minute > 59:
        raise ValidationError(f"Invalid time '{value}': out of range")

    return hour * 60 + minute


def format_time(minutes: int) -> str:
    """Format minutes since midnight as "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def time_slots() -> list[str]:
    """Labels of the 48 half-hour slots, "00:00" through "23:30"."""
    return [format_time(i * SLOT_MINUTES) for i in range(SLOTS_PER_DAY)]


def event_range(event: Event) -> tuple[int, int]:
    """Start and end of an event in minutes since midnight."""
    return (
        parse_time(event.start_time),
        parse_time(event.end_time, allow_end_of_day=True),
    )


def occupies(event: Event, slot_minutes: int) -> bool:
    """Whether the event's half-open [start, end) interval contains the slot."""
    start, end = event_range(event)
    return start <= slot_minutes < end


def events_for_slot(events: list[Event], slot: str) -> list[Event]:
    """
    Events active in the slot starting at ``slot``, in list order.

    Events with unparseable times are skipped and logged, as in build_grid.
    """
    slot_minutes = parse_time(slot)
    active = []
    for event in events:
        try:
            start, end = event_range(event)
        except ValidationError as e:
            logger.warning(f"Skipping event {event.id} in slot {slot}: {e}")
            continue
        if start <= slot_minutes < end:
            active.append(event)
    return active


def duration_blocks(start_time: str, end_time: str) -> int:
    """
    Number of 30-minute slots an event spans, rounding partial slots up.

    Example:
        duration_blocks("09:00", "10:30") == 3
        duration_blocks("09:00", "09:15") == 1

    Empty and inverted ranges span 0 slots.
    """
    start = parse_time(start_time)
    end = parse_time(end_time, allow_end_of_day=True)
    if end <= start:
        return 0
    return math.ceil((end - start) / SLOT_MINUTES)


def anchor_slot(event: Event) -> int:
    """Index of the slot containing the event's start time."""
    return parse_time(event.start_time) // SLOT_MINUTES


def build_grid(events: list[Event]) -> list[GridSlot]:
    """
    Map a day's events onto the 48-slot grid.

    Every slot lists the events active in it. Each event is also placed,
    exactly once, in its anchor slot together with the number of slots its
    block spans, so a renderer can draw one contiguous block per event.

    Events with unparseable times are skipped and logged.

    Args:
        events: The day's events

    Returns:
        48 grid slots in time order
    """
    slots = [
        GridSlot(index=i, time=label, is_hour=i % 2 == 0)
        for i, label in enumerate(time_slots())
    ]

    for event in events:
        try:
            start, end = event_range(event)
        except ValidationError as e:
            logger.warning(f"Skipping event {event.id} on the grid: {e}")
            continue

        first = start // SLOT_MINUTES
        for slot in slots[first:]:
            slot_minutes = slot.index * SLOT_MINUTES
            if slot_minutes >= end:
                break
            if slot_minutes >= start:
                slot.active.append(event)

        blocks = duration_blocks(event.start_time, event.end_time)
        if blocks > 0:
            slots[first].placed.append(PlacedEvent(event=event, blocks=blocks))
        else:
            logger.debug(f"Event {event.id} has an empty time range, not placed")

    return slots
