"""Per-event expense splitting.

Two split policies are supported:

- FULL_LIABILITY: the payer carries the whole cost; nobody owes anything.
- EQUAL_EXCLUDING_PAYER: the cost is divided by the number of members using
  floor division and every member except the payer owes one share.

Floor division can leave a remainder (``amount % member_count``). With
RemainderPolicy.DISCARD it is attributed to no one and reported on the
EventSplit; with RemainderPolicy.DISTRIBUTE it is handed out one unit at a
time to the debtors in room order.
"""

import logging
from collections.abc import Callable

from .models import (
    FREE_PAYER,
    NO_PAYER,
    Event,
    EventSplit,
    Member,
    RemainderPolicy,
    SplitPolicy,
)

logger = logging.getLogger(__name__)

UNKNOWN_PAYER = "(unknown member)"
FREE_LABEL = "Free"


def resolve_payer(event: Event, members: list[Member]) -> Member | None:
    """Look up the member who paid for an event, if there is one."""
    if event.paid_by in (FREE_PAYER, NO_PAYER):
        return None
    for member in members:
        if member.id == event.paid_by:
            return member
    return None


def is_payable(event: Event, members: list[Member]) -> bool:
    """Whether an event has a positive amount and a payer in ``members``."""
    return event.amount > 0 and resolve_payer(event, members) is not None


def payer_label(event: Event, members: list[Member]) -> str:
    """Display name for an event's payer. Never raises for dangling ids."""
    if event.paid_by == FREE_PAYER:
        return FREE_LABEL
    if event.paid_by == NO_PAYER:
        return ""
    payer = resolve_payer(event, members)
    return payer.name if payer else UNKNOWN_PAYER


def _split_full_liability(
    event: Event, members: list[Member], remainder_policy: RemainderPolicy
) -> EventSplit:
    payer = resolve_payer(event, members)
    return EventSplit(event_id=event.id, payer_id=payer.id if payer else None)


def _split_equal_excluding_payer(
    event: Event, members: list[Member], remainder_policy: RemainderPolicy
) -> EventSplit:
    if not members or not is_payable(event, members):
        return EventSplit(event_id=event.id)

    payer_id = event.paid_by
    share, remainder = divmod(event.amount, len(members))

    debtors = [member.id for member in members if member.id != payer_id]
    shares = {member_id: share for member_id in debtors}

    if remainder_policy == RemainderPolicy.DISTRIBUTE:
        # remainder < len(members), so each debtor gets at most one extra unit
        for member_id in debtors[:remainder]:
            shares[member_id] += 1
        remainder -= min(remainder, len(debtors))

    return EventSplit(
        event_id=event.id,
        payer_id=payer_id,
        share=share,
        shares={k: v for k, v in shares.items() if v > 0},
        remainder=remainder,
    )


SplitFunction = Callable[[Event, list[Member], RemainderPolicy], EventSplit]

_SPLITTERS: dict[SplitPolicy, SplitFunction] = {
    SplitPolicy.FULL_LIABILITY: _split_full_liability,
    SplitPolicy.EQUAL_EXCLUDING_PAYER: _split_equal_excluding_payer,
}


def compute_split(
    event: Event,
    members: list[Member],
    policy: SplitPolicy,
    remainder_policy: RemainderPolicy = RemainderPolicy.DISCARD,
) -> EventSplit:
    """
    Split one event's cost among the room's members.

    Args:
        event: The event to split
        members: All members of the room
        policy: Split policy to apply
        remainder_policy: What to do with floor-division leftovers

    Returns:
        The split, with debtor shares and the unallocated remainder
    """
    split = _SPLITTERS[policy](event, members, remainder_policy)
    if split.remainder:
        logger.debug(
            f"Event {event.id}: {split.remainder} of {event.amount} "
            f"not attributed to any member"
        )
    return split


def split_event(
    event: Event,
    members: list[Member],
    policy: SplitPolicy,
    remainder_policy: RemainderPolicy = RemainderPolicy.DISCARD,
) -> dict[str, int]:
    """Mapping of debtor member id to amount owed to the event's payer."""
    return compute_split(event, members, policy, remainder_policy).shares
