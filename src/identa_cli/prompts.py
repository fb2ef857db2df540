"""Interactive credential prompting.

``CredentialPrompter`` is the seam between library code and the terminal;
tests substitute a scripted implementation. An aborted prompt (Ctrl-C or
EOF) raises ``UserCancelled`` and leaves the exit decision to the caller.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from rich.prompt import Confirm, Prompt

from identa_cli import console
from identa_cli.errors import InvalidInputError, UserCancelled

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class CredentialPrompter(ABC):
    """Source of interactive user input."""

    @abstractmethod
    def get_password(self, prompt: str) -> str:
        """Ask for a secret without echo."""

    @abstractmethod
    def get_text(self, prompt: str, default: str | None = None) -> str:
        """Ask for a line of text. Returns *default* (or "") on empty input."""

    @abstractmethod
    def confirm(self, prompt: str, default: bool = False) -> bool:
        """Ask a yes/no question."""

    @abstractmethod
    def choose(self, prompt: str, options: Sequence[str]) -> int:
        """Ask the user to pick one of *options*; returns its index."""


class ConsolePrompter(CredentialPrompter):
    """``CredentialPrompter`` backed by ``rich.prompt``."""

    def get_password(self, prompt: str) -> str:
        try:
            return Prompt.ask(prompt, password=True, console=console.console)
        except (KeyboardInterrupt, EOFError) as exc:
            raise UserCancelled() from exc

    def get_text(self, prompt: str, default: str | None = None) -> str:
        try:
            if default is None:
                return Prompt.ask(prompt, default="", show_default=False, console=console.console)
            return Prompt.ask(prompt, default=default, console=console.console)
        except (KeyboardInterrupt, EOFError) as exc:
            raise UserCancelled() from exc

    def confirm(self, prompt: str, default: bool = False) -> bool:
        try:
            return Confirm.ask(prompt, default=default, console=console.console)
        except (KeyboardInterrupt, EOFError) as exc:
            raise UserCancelled() from exc

    def choose(self, prompt: str, options: Sequence[str]) -> int:
        if not options:
            raise InvalidInputError("Nothing to choose from")
        for index, option in enumerate(options, start=1):
            console.info(f"   {index}. {option}")
        choices = [str(i) for i in range(1, len(options) + 1)]
        try:
            answer = Prompt.ask(prompt, choices=choices, default="1", console=console.console)
        except (KeyboardInterrupt, EOFError) as exc:
            raise UserCancelled() from exc
        return int(answer) - 1


class PasswordProvider:
    """The SDK's ``passwordProvider``: asks for the keychain password.

    Passwords shorter than ``MIN_PASSWORD_LENGTH`` are re-prompted. When
    the SDK's prompt text is about creating a new password, the user must
    type it twice.
    """

    def __init__(self, prompter: CredentialPrompter, banner: str | None = None) -> None:
        self._prompter = prompter
        self._banner = banner

    def get_password(self, prompt_text: str) -> str:
        if self._banner:
            console.info(self._banner)

        while True:
            password = self._prompter.get_password(prompt_text)
            if not password:
                raise InvalidInputError("Password is required for keychain operations")
            if len(password) >= MIN_PASSWORD_LENGTH:
                break
            console.warn(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        lowered = prompt_text.lower()
        if "create" in lowered or "new" in lowered:
            confirmation = self._prompter.get_password("Confirm password")
            if confirmation != password:
                raise InvalidInputError("Passwords do not match")

        return password
