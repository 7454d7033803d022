"""TripSplit - Shared trip itineraries with expense splitting."""

__version__ = "0.1.0"

from .config import Settings, load_settings
from .db import Database
from .ledger import compute_balances, settle_transfers, summarize_expenses
from .models import (
    BalanceReport,
    Event,
    EventColor,
    Member,
    RemainderPolicy,
    Room,
    SplitPolicy,
)
from .service import TripService
from .splitter import split_event
from .store import InMemoryStore, TripStore
from .timegrid import build_grid, duration_blocks

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "compute_balances",
    "settle_transfers",
    "summarize_expenses",
    "BalanceReport",
    "Event",
    "EventColor",
    "Member",
    "RemainderPolicy",
    "Room",
    "SplitPolicy",
    "TripService",
    "split_event",
    "InMemoryStore",
    "TripStore",
    "build_grid",
    "duration_blocks",
]
