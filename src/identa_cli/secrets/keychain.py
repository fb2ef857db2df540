"""macOS Keychain backend for secret storage.

Wraps the macOS ``security`` CLI tool to store secrets as generic passwords
in the user's login keychain. The service becomes the item's ``svce``
attribute and the key its ``acct`` attribute.
"""

from __future__ import annotations

import logging
import re

from identa_cli.secrets.cli_backend import CommandSecretStore

logger = logging.getLogger(__name__)

# Exit code when an item is not found in Keychain
_ERR_ITEM_NOT_FOUND = 44


class KeychainStore(CommandSecretStore):
    """Stores secrets in macOS Keychain via the ``security`` CLI."""

    name = "macOS Keychain"
    binary = "security"
    install_hint = "The `security` tool ships with macOS; check that the login keychain is unlocked"

    async def get(self, service: str, key: str) -> str | None:
        returncode, stdout, stderr = await self._run(
            "find-generic-password",
            "-s", service,
            "-a", key,
            "-w",
        )
        if returncode == _ERR_ITEM_NOT_FOUND:
            return None
        if returncode != 0:
            raise self._failure("read secret", stderr)
        # -w prints the bare password followed by a newline
        return stdout.decode("utf-8").rstrip("\n")

    async def set(self, service: str, key: str, value: str) -> None:
        returncode, _, stderr = await self._run(
            "add-generic-password",
            "-s", service,
            "-a", key,
            "-w", value,
            "-U",
        )
        if returncode != 0:
            raise self._failure("store secret", stderr)
        logger.debug("Stored %s/%s in Keychain", service, key)

    async def delete(self, service: str, key: str) -> None:
        returncode, _, stderr = await self._run(
            "delete-generic-password",
            "-s", service,
            "-a", key,
        )
        if returncode not in (0, _ERR_ITEM_NOT_FOUND):
            raise self._failure("delete secret", stderr)

    async def list_keys(self, service: str) -> list[str]:
        returncode, stdout, stderr = await self._run("dump-keychain")
        if returncode != 0:
            raise self._failure("list secrets", stderr)

        output = stdout.decode("utf-8", errors="replace")
        service_marker = f'"svce"<blob>="{service}"'
        keys: list[str] = []
        # dump-keychain prints one attribute block per item, each starting with "class:"
        for block in re.split(r"^class: ", output, flags=re.MULTILINE):
            if service_marker not in block:
                continue
            acct_match = re.search(r'"acct"<blob>="(.+?)"', block)
            if acct_match and acct_match.group(1) not in keys:
                keys.append(acct_match.group(1))
        return keys
