"""Per-invocation state shared by command handlers."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from identa_cli import console
from identa_cli.api_url import resolve_api_base_url
from identa_cli.config import ConfigStore, Settings, load_settings
from identa_cli.errors import NotAuthenticatedError
from identa_cli.keys.device import DeviceKeyProvider
from identa_cli.keys.ssh import SSHKeyProvider
from identa_cli.models import Session
from identa_cli.prompts import CredentialPrompter, PasswordProvider
from identa_cli.sdk import (
    ClientFactory,
    IdentityClient,
    SdkOptions,
    create_client,
    load_client_factory,
)
from identa_cli.secrets import create_secret_store
from identa_cli.secrets.device_storage import DeviceKeyStorage
from identa_cli.secrets.store import SecretStore

logger = logging.getLogger(__name__)


@dataclass
class CommandContext:
    """Everything a command needs: parsed flags, config, prompter, and factories.

    Factories are overridable so tests can inject fakes for the secret
    backend and the SDK client.
    """

    args: argparse.Namespace
    config: ConfigStore
    prompter: CredentialPrompter
    secret_store_factory: Callable[[Settings], SecretStore] = create_secret_store
    client_factory: ClientFactory | None = None
    _settings: Settings | None = field(default=None, repr=False)
    _secret_store: SecretStore | None = field(default=None, repr=False)

    @property
    def debug(self) -> bool:
        return bool(getattr(self.args, "debug", False))

    @property
    def assume_yes(self) -> bool:
        return bool(getattr(self.args, "yes", False))

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = load_settings(self.config)
        return self._settings

    def secret_store(self) -> SecretStore:
        if self._secret_store is None:
            self._secret_store = self.secret_store_factory(self.settings)
        return self._secret_store

    def device_key_storage(self) -> DeviceKeyStorage:
        return DeviceKeyStorage(self.secret_store(), service=self.settings.service)

    def api_base_url(self) -> str:
        return resolve_api_base_url(self.config, getattr(self.args, "api_url", None), self.debug)

    def build_client(
        self,
        scopes: Sequence[str],
        password_banner: str | None = "🔐 Keychain password required",
        with_key_storage: bool = False,
        password_provider: Any | None = None,
    ) -> IdentityClient:
        """Create an SDK client wired with this CLI's providers.

        *password_provider* replaces the interactive prompt, e.g. for
        unattended runs.
        """
        device_storage = self.device_key_storage()
        options = SdkOptions(
            api_base_url=self.api_base_url(),
            scopes=list(scopes),
            password_provider=password_provider or PasswordProvider(self.prompter, banner=password_banner),
            device_key_provider=DeviceKeyProvider(device_storage),
            ssh_key_provider=SSHKeyProvider(
                self.prompter, explicit_path=getattr(self.args, "ssh_key", None)
            ),
            device_key_storage_provider=device_storage if with_key_storage else None,
            debug=self.debug,
        )
        factory = self.client_factory or load_client_factory(self.settings.sdk_factory)
        console.info("🔐 Initializing Ident SDK...")
        return create_client(factory, options, self.prompter)

    async def require_session(self, client: IdentityClient) -> Session:
        raw = client.get_session()
        if raw is None:
            raise NotAuthenticatedError()
        return Session.model_validate(raw)
