"""Pydantic domain models for TripSplit."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

# Sentinel values stored in Event.paid_by
FREE_PAYER = "free"
NO_PAYER = ""


# ============================================================================
# Enums
# ============================================================================


class EventColor(str, Enum):
    """Fixed palette of event colors, stored as CSS class names."""

    RED = "bg-red-300"
    BLUE = "bg-blue-300"
    GREEN = "bg-green-300"
    YELLOW = "bg-yellow-300"
    PURPLE = "bg-purple-300"
    PINK = "bg-pink-300"
    INDIGO = "bg-indigo-300"


class SplitPolicy(str, Enum):
    """How an event's cost is attributed to members other than the payer."""

    FULL_LIABILITY = "full_liability"  # payer carries the whole cost
    EQUAL_EXCLUDING_PAYER = "equal_excluding_payer"


class RemainderPolicy(str, Enum):
    """What happens to the units left over by floor division."""

    DISCARD = "discard"
    DISTRIBUTE = "distribute"


# ============================================================================
# Stored Models
# ============================================================================


class CamelModel(BaseModel):
    """Base model whose JSON keys are camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Member(CamelModel):
    """A traveler in a room."""

    id: str
    name: str


class Event(CamelModel):
    """A scheduled, optionally paid activity on one day of one room.

    Times are "HH:MM" strings. They are checked when an event is created or
    edited through the service, not when a stored list is loaded.
    """

    id: str
    subject: str
    start_time: str
    end_time: str
    paid_by: str = NO_PAYER  # member id, FREE_PAYER or NO_PAYER
    amount: int = 0  # whole yen
    url: str = ""
    color: EventColor = EventColor.RED


class EventDraft(CamelModel):
    """Event fields as entered by the user, before an id is assigned."""

    subject: str = ""
    start_time: str = "09:00"
    end_time: str = "10:00"
    paid_by: str = NO_PAYER
    amount: int = 0
    url: str = ""
    color: EventColor | None = None  # None = pick from the palette


def _now_ms() -> datetime:
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class Room(CamelModel):
    """A shared trip workspace."""

    id: str
    password: str
    name: str
    days: int
    members: list[Member] = Field(default_factory=list)
    created: datetime = Field(default_factory=_now_ms)

    @property
    def member_ids(self) -> list[str]:
        """Member ids in room order."""
        return [member.id for member in self.members]

    def find_member(self, member_id: str) -> Member | None:
        """Look up a member by id; dangling ids yield None."""
        for member in self.members:
            if member.id == member_id:
                return member
        return None

    @field_serializer("created")
    def _serialize_created(self, created: datetime) -> int:
        # Epoch milliseconds, as written by the browser version
        return round(created.timestamp() * 1000)


# ============================================================================
# Derived Models
# ============================================================================


class EventSplit(BaseModel):
    """Result of splitting a single event."""

    event_id: str
    payer_id: str | None = None
    share: int = 0  # per-member share before remainder handling
    shares: dict[str, int] = Field(default_factory=dict)  # debtor id -> owed
    remainder: int = 0  # units attributed to no one


class PlacedEvent(BaseModel):
    """An event anchored in the slot where it is drawn."""

    event: Event
    blocks: int  # number of 30-minute slots the block spans


class GridSlot(BaseModel):
    """One 30-minute bucket of the day grid."""

    index: int
    time: str
    is_hour: bool
    active: list[Event] = Field(default_factory=list)
    placed: list[PlacedEvent] = Field(default_factory=list)


class BalanceReport(BaseModel):
    """Per-member totals and the pairwise debt matrix for a set of events.

    ``debts[debtor][creditor]`` is never netted against the reverse direction.
    """

    policy: SplitPolicy
    remainder_policy: RemainderPolicy
    member_ids: list[str]
    total_paid: dict[str, int]
    debts: dict[str, dict[str, int]]
    unallocated: int = 0

    def to_receive(self, member_id: str) -> int:
        """Total owed to a member by everyone else."""
        return sum(
            row.get(member_id, 0)
            for debtor, row in self.debts.items()
            if debtor != member_id
        )

    def to_pay(self, member_id: str) -> int:
        """Total a member owes to everyone else."""
        return sum(self.debts.get(member_id, {}).values())

    def net(self, member_id: str) -> int:
        """Amount to receive minus amount to pay."""
        return self.to_receive(member_id) - self.to_pay(member_id)

    @property
    def net_balances(self) -> dict[str, int]:
        return {member_id: self.net(member_id) for member_id in self.member_ids}


class MemberExpenseRow(BaseModel):
    """One row of the expense summary."""

    member: Member
    total_paid: int
    event_count: int
    average_per_event: int


class ExpenseSummary(BaseModel):
    """Expense summary for a list of events."""

    rows: list[MemberExpenseRow]
    total_paid: int
    event_count: int
    average_per_event: int


class Transfer(BaseModel):
    """A netted settle-up payment between two members."""

    from_member: str
    to_member: str
    amount: int
