"""Device key storage handed to the SDK as ``deviceKeyStorageProvider``."""

from __future__ import annotations

from identa_cli.config import SERVICE_NAME
from identa_cli.secrets.store import SecretStore


class DeviceKeyStorage:
    """Key-only view of a ``SecretStore`` bound to the CLI's service namespace."""

    def __init__(self, store: SecretStore, service: str = SERVICE_NAME) -> None:
        self._store = store
        self._service = service

    @property
    def service(self) -> str:
        return self._service

    async def get(self, key: str) -> str | None:
        return await self._store.get(self._service, key)

    async def set(self, key: str, value: str) -> None:
        await self._store.set(self._service, key, value)

    async def delete(self, key: str) -> None:
        await self._store.delete(self._service, key)
