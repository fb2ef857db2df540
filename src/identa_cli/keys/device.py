"""Device keys: lookup for the SDK and registration of new ones.

A device key is 32 random bytes kept base64-encoded in the active secret
store under ``device-key-<deviceId>``. The SDK refers to it by key id
(``device:<deviceId>:<timestampMs>``) and calls ``DeviceKeyProvider`` to
get the raw bytes back.
"""

from __future__ import annotations

import base64
import binascii
import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from identa_cli import console
from identa_cli.device import (
    PlatformInfo,
    derive_device_id,
    device_key_secret_name,
    extract_device_id,
    get_platform_info,
    make_device_key_id,
)
from identa_cli.errors import DeviceKeyNotFoundError, InvalidInputError, UserCancelled
from identa_cli.prompts import CredentialPrompter
from identa_cli.secrets.device_storage import DeviceKeyStorage

logger = logging.getLogger(__name__)

DEVICE_KEY_BYTES = 32


class DeviceKeyProvider:
    """The SDK's ``deviceKeyProvider``: key id (or device id) -> raw key bytes.

    Lookup is two-step. The full identifier is tried first. If that misses
    and the identifier is a ``device:<deviceId>:<ts>`` key id, the bare
    ``deviceId`` is tried next: keys registered by older releases were
    stored under the device id alone.
    """

    def __init__(self, storage: DeviceKeyStorage) -> None:
        self._storage = storage

    async def __call__(self, identifier: str) -> bytes:
        return await self.resolve(identifier)

    async def resolve(self, identifier: str) -> bytes:
        encoded = await self._storage.get(device_key_secret_name(identifier))
        if encoded is None:
            encoded = await self._resolve_by_device_id(identifier)
        if encoded is None:
            raise DeviceKeyNotFoundError(identifier)

        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidInputError(f"Stored device key for {identifier} is not valid base64") from exc

    async def _resolve_by_device_id(self, identifier: str) -> str | None:
        device_id = extract_device_id(identifier)
        if device_id is None:
            return None
        logger.debug("Device key %s not found, retrying with device id %s", identifier, device_id)
        return await self._storage.get(device_key_secret_name(device_id))


@dataclass(frozen=True)
class DeviceRegistration:
    device_id: str
    key_id: str
    description: str
    platform_info: PlatformInfo
    replaced_existing: bool


def registered_key_id(result: Any) -> str | None:
    """Key id from an ``add_unlock_method`` result.

    The SDK may return the id itself or a wrapped-seed object (or dict)
    carrying ``key_id``/``keyId``.
    """
    if result is None or isinstance(result, str):
        return result or None
    if isinstance(result, dict):
        value = result.get("key_id", result.get("keyId"))
    else:
        value = getattr(result, "key_id", getattr(result, "keyId", None))
    return value if isinstance(value, str) and value else None


class DeviceKeyRegistrar:
    """Generates, stores, and registers a device key for this machine.

    Parameters
    ----------
    storage:
        Where the raw key is persisted.
    prompter:
        Used to confirm replacing an existing key.
    clock:
        Returns seconds since the epoch; used to mint unique key ids.
    random_bytes:
        Source of key material.
    """

    def __init__(
        self,
        storage: DeviceKeyStorage,
        prompter: CredentialPrompter,
        clock: Callable[[], float] = time.time,
        random_bytes: Callable[[int], bytes] = secrets.token_bytes,
        device_id: str | None = None,
        platform_info: PlatformInfo | None = None,
    ) -> None:
        self._storage = storage
        self._prompter = prompter
        self._clock = clock
        self._random_bytes = random_bytes
        self.device_id = device_id if device_id is not None else derive_device_id()
        self.platform_info = platform_info if platform_info is not None else get_platform_info()

    @property
    def secret_name(self) -> str:
        return device_key_secret_name(self.device_id)

    async def has_existing_key(self) -> bool:
        return await self._storage.get(self.secret_name) is not None

    async def register(self, client: Any, description: str, assume_yes: bool = False) -> DeviceRegistration:
        """Create a fresh device key and add it to the keychain as an unlock method.

        Replacing an existing key for this device is destructive; it needs
        *assume_yes* or interactive confirmation, otherwise ``UserCancelled``.
        """
        replaced = False
        if await self.has_existing_key():
            console.warn("Device key already exists for this device")
            if assume_yes:
                console.info("   --yes flag provided, replacing existing device key")
            elif not self._prompter.confirm("Replace existing device key?", default=False):
                raise UserCancelled("Device key generation cancelled")
            replaced = True

        console.info("🔑 Generating device key...")
        device_key = self._random_bytes(DEVICE_KEY_BYTES)
        await self._storage.set(self.secret_name, base64.b64encode(device_key).decode("ascii"))
        console.success("Device key stored in secure storage")
        logger.info("Stored device key for device %s", self.device_id)

        key_id = make_device_key_id(self.device_id, int(self._clock() * 1000))
        console.info("📝 Adding device unlock method to keychain...")
        result = await client.add_unlock_method(
            "device",
            dk_bytes=device_key,
            device_id=self.device_id,
            platform=self.platform_info.platform,
            secure_store=self.platform_info.secure_store,
            description=description,
            key_id=key_id,
        )

        return DeviceRegistration(
            device_id=self.device_id,
            key_id=registered_key_id(result) or key_id,
            description=description,
            platform_info=self.platform_info,
            replaced_existing=replaced,
        )
