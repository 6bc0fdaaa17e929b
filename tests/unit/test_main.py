"""Unit tests for the console entry point."""

import pytest

from cerebras_chat.main import _print_notification
from cerebras_chat.models import Notification


class TestPrintNotification:
    """Tests for console notification output."""

    def test_title_and_description(self, capsys: pytest.CaptureFixture[str]) -> None:
        _print_notification(Notification(title="Chat deleted", description="Removed 1 chat"))

        assert capsys.readouterr().out == "[Chat deleted] Removed 1 chat\n"
