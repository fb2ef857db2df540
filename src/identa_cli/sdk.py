"""Boundary with the external identity SDK.

The SDK owns OAuth, keychain crypto, and fragment storage. This module
describes the surface the CLI relies on (``IdentityClient``), the options
it is constructed with (``SdkOptions``), and how the client factory is
located: an importable ``module:attribute`` path taken from the
``sdkFactory`` setting.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from identa_cli.errors import SdkUnavailableError
from identa_cli.models import UnlockMethod
from identa_cli.prompts import CredentialPrompter

logger = logging.getLogger(__name__)

CLIENT_ID = "ident-cli"
UNLOCK_METHOD_SELECTION = "unlock_method_selection"

DEFAULT_SCOPES = ["user", "vault.read", "vault.write", "vault.decrypt"]


@runtime_checkable
class IdentityClient(Protocol):
    """Methods of the SDK client used by CLI commands."""

    async def ready(self) -> None: ...

    def get_session(self) -> Any | None: ...

    async def ensure_authenticated(
        self, scopes: Sequence[str], timeout_ms: int | None = None
    ) -> None: ...

    async def clear_session(self) -> None: ...

    async def get_detailed_unlock_methods(self) -> list[Any]: ...

    async def is_unlocked(self) -> bool: ...

    async def add_unlock_method(self, method: str, **options: Any) -> Any: ...

    async def remove_unlock_method(self, method: str, key_id: str) -> None: ...

    async def test_unlock_method(self, method: str, key_id: str) -> None: ...

    async def change_password(self) -> None: ...

    async def get_fragment(self, path: str) -> Any: ...

    async def get_raw_fragment(self, path: str) -> Any: ...

    async def put_fragment(self, path: str, data: Any, visibility: str = "private") -> None: ...

    async def list_fragments(self, prefix: str = "") -> list[Any]: ...

    async def delete_fragment(self, path: str) -> None: ...

    def on(self, event: str, handler: Callable[..., Awaitable[Any]]) -> None: ...


class SdkOptions(BaseModel):
    """Options recognised by the SDK client factory."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    api_base_url: str
    client_id: str = CLIENT_ID
    scopes: list[str] = Field(default_factory=lambda: list(DEFAULT_SCOPES))
    password_provider: Any = None
    device_key_provider: Any = None
    ssh_key_provider: Any = None
    device_key_storage_provider: Any = None
    debug: bool = False


ClientFactory = Callable[[SdkOptions], IdentityClient]


def load_client_factory(path: str) -> ClientFactory:
    """Import the SDK client factory named by ``module:attribute``.

    Dotted attributes (``pkg.client:IdentClient.create``) are followed.
    """
    module_name, sep, attr_path = path.partition(":")
    if not sep or not module_name or not attr_path:
        raise SdkUnavailableError(
            f"Invalid SDK factory path: {path!r}",
            hint="Expected module:attribute, e.g. identa config set sdkFactory ident_agency_sdk:create_client",
        )

    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise SdkUnavailableError(
            f"Identity SDK module {module_name!r} could not be imported: {exc}",
            hint="Install the Ident.Agency SDK or point `sdkFactory` at it",
        ) from exc

    for part in attr_path.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise SdkUnavailableError(f"Identity SDK factory {path!r} does not exist") from exc

    if not callable(target):
        raise SdkUnavailableError(f"Identity SDK factory {path!r} is not callable")
    logger.debug("Loaded SDK factory %s", path)
    return target


def make_unlock_method_selector(
    prompter: CredentialPrompter,
) -> Callable[[Sequence[Any]], Awaitable[str]]:
    """Handler for the SDK's ``unlock_method_selection`` event.

    The SDK passes the candidate methods; the handler returns the chosen
    key id.
    """

    async def select(methods: Sequence[Any]) -> str:
        parsed = [UnlockMethod.model_validate(m) for m in methods]
        index = prompter.choose(
            "Multiple unlock methods available. Select unlock method",
            [m.display_name for m in parsed],
        )
        return parsed[index].key_id

    return select


def create_client(factory: ClientFactory, options: SdkOptions, prompter: CredentialPrompter) -> IdentityClient:
    """Construct the SDK client and attach the CLI's event handlers."""
    try:
        client = factory(options)
    except Exception as exc:
        raise SdkUnavailableError(f"Identity SDK client could not be created: {exc}") from exc
    client.on(UNLOCK_METHOD_SELECTION, make_unlock_method_selector(prompter))
    return client
