"""Tests for interactive prompting and the SDK password provider."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from identa_cli.errors import InvalidInputError, UserCancelled
from identa_cli.prompts import ConsolePrompter, PasswordProvider


class TestPasswordProvider:
    def test_returns_password(self, prompter) -> None:
        prompter.passwords = ["correct horse"]
        assert PasswordProvider(prompter).get_password("Enter keychain password") == "correct horse"

    def test_empty_password_rejected(self, prompter) -> None:
        prompter.passwords = [""]
        with pytest.raises(InvalidInputError, match="Password is required"):
            PasswordProvider(prompter).get_password("Enter keychain password")

    def test_short_password_reprompted(self, prompter) -> None:
        prompter.passwords = ["short", "long enough"]
        assert PasswordProvider(prompter).get_password("Enter keychain password") == "long enough"
        assert len(prompter.prompts) == 2

    def test_new_password_confirmed(self, prompter) -> None:
        prompter.passwords = ["long enough", "long enough"]
        assert PasswordProvider(prompter).get_password("Create a new keychain password") == "long enough"
        assert prompter.prompts[-1] == "Confirm password"

    def test_confirmation_mismatch(self, prompter) -> None:
        prompter.passwords = ["long enough", "different!"]
        with pytest.raises(InvalidInputError, match="Passwords do not match"):
            PasswordProvider(prompter).get_password("Create keychain password")

    def test_banner_printed(self, prompter, capsys: pytest.CaptureFixture[str]) -> None:
        prompter.passwords = ["long enough"]
        PasswordProvider(prompter, banner="Keychain password required").get_password("Password")
        assert "Keychain password required" in capsys.readouterr().out


class TestConsolePrompter:
    def test_interrupt_becomes_user_cancelled(self) -> None:
        with patch("identa_cli.prompts.Prompt.ask", side_effect=KeyboardInterrupt):
            with pytest.raises(UserCancelled):
                ConsolePrompter().get_password("Password")

    def test_eof_becomes_user_cancelled(self) -> None:
        with patch("identa_cli.prompts.Confirm.ask", side_effect=EOFError):
            with pytest.raises(UserCancelled):
                ConsolePrompter().confirm("Continue?")

    def test_get_text_passes_default(self) -> None:
        with patch("identa_cli.prompts.Prompt.ask", return_value="Linux Device") as ask:
            assert ConsolePrompter().get_text("Description", default="Linux Device") == "Linux Device"
        assert ask.call_args.kwargs["default"] == "Linux Device"

    def test_choose_returns_zero_based_index(self) -> None:
        with patch("identa_cli.prompts.Prompt.ask", return_value="2") as ask:
            assert ConsolePrompter().choose("Pick", ["password", "device"]) == 1
        assert ask.call_args.kwargs["choices"] == ["1", "2"]

    def test_choose_without_options(self) -> None:
        with pytest.raises(InvalidInputError):
            ConsolePrompter().choose("Pick", [])
