"""Tests for per-event expense splitting."""

import pytest

from trip_split.models import Event, Member, RemainderPolicy, SplitPolicy
from trip_split.splitter import (
    FREE_LABEL,
    UNKNOWN_PAYER,
    compute_split,
    is_payable,
    payer_label,
    resolve_payer,
    split_event,
)

EQUAL = SplitPolicy.EQUAL_EXCLUDING_PAYER


def make_event(amount: int, paid_by: str, id: str = "1") -> Event:
    """Create a paid event for split tests."""
    return Event(
        id=id,
        subject=f"Event {id}",
        start_time="09:00",
        end_time="10:00",
        paid_by=paid_by,
        amount=amount,
    )


@pytest.fixture
def members():
    """Three travelers."""
    return [
        Member(id="A", name="Akihiro"),
        Member(id="B", name="Chihiro"),
        Member(id="C", name="Shogo"),
    ]


class TestEqualSplitExcludingPayer:
    """Tests for the equal-split policy."""

    def test_each_non_payer_owes_one_share(self, members):
        shares = split_event(make_event(900, "A"), members, EQUAL)

        assert shares == {"B": 300, "C": 300}

    def test_distributed_total_never_exceeds_amount(self, members):
        """900 between 3: 600 is owed, the payer's own 300 is owed by no one."""
        split = compute_split(make_event(900, "A"), members, EQUAL)

        assert split.share == 300
        assert sum(split.shares.values()) == 600
        assert sum(split.shares.values()) <= 900
        assert "A" not in split.shares
        assert split.remainder == 0

    def test_floor_remainder_is_discarded(self, members):
        """1000 between 3: 333 each, 1 yen attributed to no one."""
        split = compute_split(make_event(1000, "A"), members, EQUAL)

        assert split.shares == {"B": 333, "C": 333}
        assert split.remainder == 1
        assert sum(split.shares.values()) + split.share + split.remainder == 1000

    def test_remainder_distributed_in_member_order(self, members):
        split = compute_split(
            make_event(1000, "A"), members, EQUAL, RemainderPolicy.DISTRIBUTE
        )

        assert split.shares == {"B": 334, "C": 333}
        assert split.remainder == 0

    def test_distribute_skips_payer(self, members):
        """Remainder of 2 goes to the two debtors, never to the payer."""
        split = compute_split(
            make_event(1001, "B"), members, EQUAL, RemainderPolicy.DISTRIBUTE
        )

        assert split.shares == {"A": 334, "C": 334}
        assert split.remainder == 0

    def test_amount_smaller_than_member_count(self, members):
        split = compute_split(make_event(2, "A"), members, EQUAL)

        assert split.shares == {}
        assert split.remainder == 2

    def test_single_member_owes_nothing(self):
        solo = [Member(id="A", name="Akihiro")]

        assert split_event(make_event(500, "A"), solo, EQUAL) == {}


class TestNonContributingEvents:
    """Events that never produce debts."""

    def test_zero_members_returns_empty_mapping(self):
        assert split_event(make_event(900, "A"), [], EQUAL) == {}

    def test_zero_amount(self, members):
        assert split_event(make_event(0, "A"), members, EQUAL) == {}

    def test_negative_amount(self, members):
        assert split_event(make_event(-300, "A"), members, EQUAL) == {}

    @pytest.mark.parametrize("paid_by", ["free", "", "Z"])
    def test_free_unset_or_dangling_payer(self, members, paid_by):
        assert split_event(make_event(900, paid_by), members, EQUAL) == {}


class TestFullLiability:
    """Tests for the full-liability policy."""

    def test_no_cross_member_split(self, members):
        split = compute_split(
            make_event(900, "A"), members, SplitPolicy.FULL_LIABILITY
        )

        assert split.shares == {}
        assert split.payer_id == "A"
        assert split.remainder == 0

    def test_zero_members(self):
        assert split_event(make_event(900, "A"), [], SplitPolicy.FULL_LIABILITY) == {}


class TestPayerLookup:
    """Tests for resolving the weak event-to-member reference."""

    def test_resolve_existing_member(self, members):
        assert resolve_payer(make_event(100, "B"), members) == members[1]

    def test_resolve_dangling_member(self, members):
        assert resolve_payer(make_event(100, "Z"), members) is None

    def test_is_payable(self, members):
        assert is_payable(make_event(100, "A"), members)
        assert not is_payable(make_event(0, "A"), members)
        assert not is_payable(make_event(100, "free"), members)

    def test_payer_labels(self, members):
        assert payer_label(make_event(100, "C"), members) == "Shogo"
        assert payer_label(make_event(0, "free"), members) == FREE_LABEL
        assert payer_label(make_event(0, ""), members) == ""
        assert payer_label(make_event(100, "Z"), members) == UNKNOWN_PAYER
