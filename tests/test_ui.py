"""Tests for the interactive payer picker."""

from unittest.mock import MagicMock, patch

import pytest
from prompt_toolkit.document import Document

from trip_split.models import Event, Member
from trip_split.ui import PayerCompleter, confirm_delete, select_payer_interactive


@pytest.fixture
def members():
    """Room members."""
    return [
        Member(id="1", name="Akihiro"),
        Member(id="2", name="Chihiro"),
        Member(id="3", name="Shogo"),
    ]


def completions(completer: PayerCompleter, text: str) -> list[str]:
    """Completion texts offered for the typed text."""
    return [c.text for c in completer.get_completions(Document(text), None)]


class TestPayerCompleter:
    """Tests for PayerCompleter."""

    def test_empty_query_lists_free_and_members(self, members):
        completer = PayerCompleter(members)

        assert completions(completer, "") == ["Free", "Akihiro", "Chihiro", "Shogo"]

    def test_fuzzy_match(self, members):
        completer = PayerCompleter(members)

        assert completions(completer, "hr") == ["Akihiro", "Chihiro"]
        assert completions(completer, "sg") == ["Shogo"]
        assert completions(completer, "fe") == ["Free"]

    def test_resolve_by_name_or_id(self, members):
        completer = PayerCompleter(members)

        assert completer.resolve("Chihiro") == "2"
        assert completer.resolve("3") == "3"
        assert completer.resolve("Free") == "free"
        assert completer.resolve("Nobody") is None


class TestSelectPayerInteractive:
    """Tests for select_payer_interactive."""

    @patch("trip_split.ui.PromptSession")
    def test_retries_until_valid(self, mock_session_class, members):
        mock_session = MagicMock()
        mock_session.prompt.side_effect = ["Nobody", "Chihiro"]
        mock_session_class.return_value = mock_session

        assert select_payer_interactive(members, "Lunch") == "2"
        assert mock_session.prompt.call_count == 2

    @patch("trip_split.ui.PromptSession")
    def test_empty_input_cancels(self, mock_session_class, members):
        mock_session = MagicMock()
        mock_session.prompt.return_value = ""
        mock_session_class.return_value = mock_session

        assert select_payer_interactive(members, "Lunch") is None

    @patch("trip_split.ui.PromptSession")
    def test_ctrl_c_cancels(self, mock_session_class, members):
        mock_session = MagicMock()
        mock_session.prompt.side_effect = KeyboardInterrupt
        mock_session_class.return_value = mock_session

        assert select_payer_interactive(members, "Lunch") is None


class TestConfirmDelete:
    """Tests for confirm_delete."""

    @pytest.fixture
    def event(self):
        return Event(id="1", subject="Lunch", start_time="12:00", end_time="13:00")

    @pytest.mark.parametrize(
        "answer,expected", [("y", True), ("YES", True), ("", False), ("n", False)]
    )
    def test_answers(self, event, answer, expected):
        with patch("builtins.input", return_value=answer):
            assert confirm_delete(event) is expected
