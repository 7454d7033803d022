"""Custom exceptions for TripSplit."""


class TripSplitError(Exception):
    """Base exception for all TripSplit errors."""

    pass


class ConfigurationError(TripSplitError):
    """Raised when configuration is invalid or missing."""

    pass


class ValidationError(TripSplitError):
    """Raised when a room or event mutation is rejected."""

    pass


class ReferentialError(ValidationError):
    """Raised when an event being saved references a member not in the room."""

    def __init__(self, member_id: str, room_id: str, message: str | None = None):
        self.member_id = member_id
        self.room_id = room_id
        super().__init__(
            message or f"Member '{member_id}' is not part of room {room_id}"
        )


class NotFoundError(TripSplitError):
    """Base class for lookups that found nothing."""

    pass


class RoomNotFoundError(NotFoundError):
    """Raised when a room id (or the current room pointer) cannot be resolved."""

    def __init__(self, room_id: str | None, message: str | None = None):
        self.room_id = room_id
        super().__init__(
            message
            or (
                f"Room {room_id} not found"
                if room_id
                else "No room selected. Create a room or log in first"
            )
        )


class EventNotFoundError(NotFoundError):
    """Raised when an event id does not exist in a day's event list."""

    def __init__(self, event_id: str, day: int, message: str | None = None):
        self.event_id = event_id
        self.day = day
        super().__init__(message or f"Event {event_id} not found on day {day}")


class AuthenticationError(TripSplitError):
    """Raised when a room id/password pair does not match."""

    pass


class StoreError(TripSplitError):
    """Raised when the backing store fails to persist a value."""

    pass
