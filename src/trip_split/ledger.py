"""Balance ledger: per-member totals, the debt matrix and settle-up views."""

import logging
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from .models import (
    BalanceReport,
    Event,
    ExpenseSummary,
    Member,
    MemberExpenseRow,
    RemainderPolicy,
    SplitPolicy,
    Transfer,
)
from .splitter import compute_split, resolve_payer

logger = logging.getLogger(__name__)


def round_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounded to the nearest integer, halves away from zero."""
    if denominator == 0:
        return 0
    quotient = Decimal(numerator) / Decimal(denominator)
    return int(quotient.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def total_paid_by_member(members: list[Member], events: list[Event]) -> dict[str, int]:
    """
    Sum of event amounts per paying member.

    Independent of the split policy: this is cash actually paid out. Events
    paid by "free", nobody, or a member no longer in the room are not counted.
    """
    totals = {member.id: 0 for member in members}
    for event in events:
        payer = resolve_payer(event, members)
        if payer is not None:
            totals[payer.id] += event.amount or 0
    return totals


def compute_balances(
    members: list[Member],
    events: list[Event],
    policy: SplitPolicy = SplitPolicy.EQUAL_EXCLUDING_PAYER,
    remainder_policy: RemainderPolicy = RemainderPolicy.DISCARD,
) -> BalanceReport:
    """
    Aggregate per-event splits into totals and a pairwise debt matrix.

    Every event in the pass is split with the same policy.

    Args:
        members: Room members, in room order
        events: Events to account for (one day or a whole trip)
        policy: Split policy to apply to every event
        remainder_policy: What to do with floor-division leftovers

    Returns:
        Balance report; ``debts[debtor][creditor]`` is not netted
    """
    member_ids = [member.id for member in members]
    debts = {
        debtor: {creditor: 0 for creditor in member_ids if creditor != debtor}
        for debtor in member_ids
    }
    unallocated = 0

    for event in events:
        split = compute_split(event, members, policy, remainder_policy)
        unallocated += split.remainder
        for debtor, owed in split.shares.items():
            if debtor == split.payer_id:
                continue
            debts[debtor][split.payer_id] += owed

    report = BalanceReport(
        policy=policy,
        remainder_policy=remainder_policy,
        member_ids=member_ids,
        total_paid=total_paid_by_member(members, events),
        debts=debts,
        unallocated=unallocated,
    )

    logger.info(
        f"Computed balances for {len(members)} members over {len(events)} events "
        f"({policy.value}, unallocated: {unallocated})"
    )

    return report


def summarize_expenses(members: list[Member], events: list[Event]) -> ExpenseSummary:
    """
    Build the expense summary table: total paid, event count and average.

    Averages are rounded to the nearest integer and fall back to 0 when there
    are no events. The totals row divides by every event in the list,
    including free and unpaid ones.
    """
    totals = total_paid_by_member(members, events)

    rows = []
    for member in members:
        event_count = sum(1 for event in events if event.paid_by == member.id)
        rows.append(
            MemberExpenseRow(
                member=member,
                total_paid=totals[member.id],
                event_count=event_count,
                average_per_event=round_half_up(totals[member.id], event_count),
            )
        )

    grand_total = sum(totals.values())
    return ExpenseSummary(
        rows=rows,
        total_paid=grand_total,
        event_count=len(events),
        average_per_event=round_half_up(grand_total, len(events)),
    )


def settle_transfers(report: BalanceReport) -> list[Transfer]:
    """
    Net each member pair into a single directed transfer.

    This is presentation only; the report's matrix is left untouched.
    """
    transfers = []
    ids = report.member_ids
    for i, first in enumerate(ids):
        for second in ids[i + 1 :]:
            owed = report.debts[first].get(second, 0) - report.debts[second].get(
                first, 0
            )
            if owed > 0:
                transfers.append(
                    Transfer(from_member=first, to_member=second, amount=owed)
                )
            elif owed < 0:
                transfers.append(
                    Transfer(from_member=second, to_member=first, amount=-owed)
                )
    return transfers


def merge_events(days: Iterable[list[Event]]) -> list[Event]:
    """Flatten per-day event lists into one list for trip-wide balances."""
    return [event for events in days for event in events]
