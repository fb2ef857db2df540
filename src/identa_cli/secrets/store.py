"""Abstract interface for secret storage."""

from __future__ import annotations

from abc import ABC, abstractmethod


class SecretStore(ABC):
    """Abstract secret store keyed by ``(service, key)``.

    All methods are async to support subprocess-based backends (macOS
    ``security``, ``secret-tool``, ``gcloud``). Backends raise
    ``BackendUnavailableError`` when they cannot be reached; an absent
    entry is never an error.
    """

    #: Short backend label shown in CLI output.
    name: str = "secret store"

    @abstractmethod
    async def get(self, service: str, key: str) -> str | None:
        """Retrieve a secret. Returns None if not found."""

    @abstractmethod
    async def set(self, service: str, key: str, value: str) -> None:
        """Create or replace a secret."""

    @abstractmethod
    async def delete(self, service: str, key: str) -> None:
        """Delete a secret. Does not raise if the key does not exist."""

    @abstractmethod
    async def list_keys(self, service: str) -> list[str]:
        """Return the keys stored under *service*."""
