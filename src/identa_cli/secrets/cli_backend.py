"""Shared subprocess plumbing for CLI-driven secret backends."""

from __future__ import annotations

import asyncio
import logging

from identa_cli.errors import BackendUnavailableError
from identa_cli.secrets.store import SecretStore

logger = logging.getLogger(__name__)


class CommandSecretStore(SecretStore):
    """A ``SecretStore`` that drives an external command-line tool.

    Subclasses set ``binary`` and ``install_hint``.
    """

    binary: str = ""
    install_hint: str | None = None

    async def _run(self, *args: str, stdin: bytes | None = None) -> tuple[int, bytes, bytes]:
        """Run ``binary *args`` and return (returncode, stdout, stderr)."""
        logger.debug("Running %s %s", self.binary, args[0] if args else "")
        try:
            proc = await asyncio.create_subprocess_exec(
                self.binary,
                *args,
                stdin=asyncio.subprocess.PIPE if stdin is not None else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise BackendUnavailableError(
                f"{self.name} is unavailable: `{self.binary}` was not found",
                hint=self.install_hint,
            ) from exc
        stdout, stderr = await proc.communicate(input=stdin)
        return proc.returncode or 0, stdout, stderr

    def _failure(self, action: str, stderr: bytes) -> BackendUnavailableError:
        detail = stderr.decode("utf-8", errors="replace").strip()
        message = f"{self.name} failed to {action}"
        if detail:
            message = f"{message}: {detail}"
        return BackendUnavailableError(message, hint=self.install_hint)
