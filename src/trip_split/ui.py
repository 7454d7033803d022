"""Interactive UI components for choosing who paid for an event."""

import logging
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from .models import FREE_PAYER, Event, Member
from .splitter import FREE_LABEL

logger = logging.getLogger(__name__)


class PayerCompleter(Completer):
    """Fuzzy search completer over room members plus the "Free" option."""

    def __init__(self, members: list[Member]):
        """Initialize the completer with the room's members."""
        self.members = members

        # Build searchable names and name-to-id mapping
        self.name_to_id = {FREE_LABEL: FREE_PAYER}
        for member in members:
            self.name_to_id[member.name] = member.id
        self.searchable = list(self.name_to_id)

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions."""
        query = document.text.lower()

        for name in self.searchable:
            if not query or self._fuzzy_match(query, name.lower()):
                yield Completion(
                    text=name,
                    start_position=-len(document.text),
                    display=name,
                )

    def _fuzzy_match(self, query: str, text: str) -> bool:
        """
        Fuzzy match: all characters in query must appear in order in text.

        Example:
            query="ak" matches "Akihiro"
            query="fr" matches "Free"
        """
        query_idx = 0
        for char in text:
            if query_idx < len(query) and char == query[query_idx]:
                query_idx += 1
        return query_idx == len(query)

    def resolve(self, text: str) -> str | None:
        """Map an entered name (or member id) back to a payer id."""
        text = text.strip()
        if text in self.name_to_id:
            return self.name_to_id[text]
        for member in self.members:
            if member.id == text:
                return member.id
        return None


def select_payer_interactive(members: list[Member], subject: str) -> str | None:
    """
    Interactive payer selection with fuzzy search.

    Args:
        members: Room members
        subject: Subject of the event being entered

    Returns:
        Selected member id or "free", or None to cancel
    """
    print(f"\n💴 Who paid for: {subject}")
    print("   Type to search, press Enter to confirm, Ctrl+C to cancel\n")

    completer = PayerCompleter(members)
    session: PromptSession[str] = PromptSession(completer=completer)

    try:
        while True:
            result = session.prompt("Paid by: ", complete_while_typing=True)

            if not result:
                return None

            payer_id = completer.resolve(result)
            if payer_id:
                logger.info(f"User selected payer: {result}")
                return payer_id

            print("❌ Unknown member. Please select from the list or press Tab.")

    except KeyboardInterrupt:
        print("\n⏭️  Cancelled")
        return None
    except EOFError:
        return None


def confirm_delete(event: Event) -> bool:
    """
    Simple yes/no confirmation before deleting an event.

    Returns:
        True if confirmed, False otherwise
    """
    print(f"\n🗑️  {event.subject} ({event.start_time}〜{event.end_time})")

    response = input("   Delete this event? [y/N] ").strip().lower()

    return response in ("y", "yes")
