"""Linux Secret Service backend for secret storage.

Wraps libsecret's ``secret-tool`` CLI. Items carry two attributes,
``service`` and ``account``; the secret itself is passed on stdin so it
never appears in the process list.

``secret-tool`` exits 1 with empty stderr when an item does not exist, and
1 with a D-Bus message on stderr when no keyring daemon is reachable.
"""

from __future__ import annotations

import logging
import re

from identa_cli.secrets.cli_backend import CommandSecretStore

logger = logging.getLogger(__name__)

_ACCOUNT_LINE = re.compile(r"^attribute\.account = (.+)$", re.MULTILINE)


class SecretServiceStore(CommandSecretStore):
    """Stores secrets in the desktop keyring via ``secret-tool``."""

    name = "Secret Service keyring"
    binary = "secret-tool"
    install_hint = (
        "Install libsecret-tools and make sure a keyring daemon "
        "(gnome-keyring, KWallet) is running, or run `identa config set provider gcp`"
    )

    async def get(self, service: str, key: str) -> str | None:
        returncode, stdout, stderr = await self._run(
            "lookup", "service", service, "account", key,
        )
        if returncode != 0:
            if stderr.strip():
                raise self._failure("read secret", stderr)
            return None
        return stdout.decode("utf-8")

    async def set(self, service: str, key: str, value: str) -> None:
        returncode, _, stderr = await self._run(
            "store",
            f"--label={service}: {key}",
            "service", service,
            "account", key,
            stdin=value.encode("utf-8"),
        )
        if returncode != 0:
            raise self._failure("store secret", stderr)
        logger.debug("Stored %s/%s in Secret Service", service, key)

    async def delete(self, service: str, key: str) -> None:
        returncode, _, stderr = await self._run(
            "clear", "service", service, "account", key,
        )
        if returncode != 0 and stderr.strip():
            raise self._failure("delete secret", stderr)

    async def list_keys(self, service: str) -> list[str]:
        returncode, stdout, stderr = await self._run(
            "search", "--all", "service", service,
        )
        if returncode != 0:
            if stderr.strip():
                raise self._failure("list secrets", stderr)
            return []
        # Attributes are written to stdout or stderr depending on the libsecret version
        output = (stdout + b"\n" + stderr).decode("utf-8", errors="replace")
        keys: list[str] = []
        for match in _ACCOUNT_LINE.finditer(output):
            if match.group(1) not in keys:
                keys.append(match.group(1))
        return keys
