"""Shared test fixtures for the Ident.Agency CLI tests."""

from __future__ import annotations

import pathlib
from collections.abc import Callable, Sequence
from typing import Any

import pytest

from identa_cli.__main__ import parse_args
from identa_cli.commands.context import CommandContext
from identa_cli.config import ConfigStore
from identa_cli.prompts import CredentialPrompter
from identa_cli.sdk import SdkOptions
from identa_cli.secrets.store import SecretStore


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class InMemorySecretStore(SecretStore):
    """Dict-backed ``SecretStore`` keyed by (service, key)."""

    name = "memory"

    def __init__(self) -> None:
        self.data: dict[tuple[str, str], str] = {}
        self.reads: list[tuple[str, str]] = []

    async def get(self, service: str, key: str) -> str | None:
        self.reads.append((service, key))
        return self.data.get((service, key))

    async def set(self, service: str, key: str, value: str) -> None:
        self.data[(service, key)] = value

    async def delete(self, service: str, key: str) -> None:
        self.data.pop((service, key), None)

    async def list_keys(self, service: str) -> list[str]:
        return [k for (s, k) in self.data if s == service]


class FakePrompter(CredentialPrompter):
    """Scripted prompter. Each answer list is consumed front to back.

    An empty script falls back to the prompt's default, except for
    passwords, which fail the test.
    """

    def __init__(self) -> None:
        self.passwords: list[str] = []
        self.texts: list[str] = []
        self.confirms: list[bool] = []
        self.choices: list[int] = []
        self.prompts: list[str] = []

    def get_password(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.passwords:
            raise AssertionError(f"Unexpected password prompt: {prompt}")
        return self.passwords.pop(0)

    def get_text(self, prompt: str, default: str | None = None) -> str:
        self.prompts.append(prompt)
        if self.texts:
            return self.texts.pop(0)
        return default or ""

    def confirm(self, prompt: str, default: bool = False) -> bool:
        self.prompts.append(prompt)
        if self.confirms:
            return self.confirms.pop(0)
        return default

    def choose(self, prompt: str, options: Sequence[str]) -> int:
        self.prompts.append(prompt)
        if self.choices:
            return self.choices.pop(0)
        return 0


class FakeIdentityClient:
    """Stand-in for the SDK client; records every call it receives."""

    def __init__(self, options: SdkOptions | None = None) -> None:
        self.options = options
        self.session: dict[str, Any] | None = {
            "subject_id": "user-123",
            "subject_hash": "hash-abc",
            "scopes": ["user"],
        }
        self.methods: list[dict[str, Any]] = []
        self.fragments: dict[str, Any] = {}
        self.unlocked = True
        self.handlers: dict[str, Any] = {}
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []
        self.added_key_id: Any = None

    def _record(self, name: str, *args: Any, **kwargs: Any) -> None:
        self.calls.append((name, args, kwargs))

    def called(self, name: str) -> list[tuple[tuple[Any, ...], dict[str, Any]]]:
        return [(args, kwargs) for (n, args, kwargs) in self.calls if n == name]

    async def ready(self) -> None:
        self._record("ready")

    def get_session(self) -> dict[str, Any] | None:
        return self.session

    async def ensure_authenticated(self, scopes: Sequence[str], timeout_ms: int | None = None) -> None:
        self._record("ensure_authenticated", list(scopes), timeout_ms)

    async def clear_session(self) -> None:
        self._record("clear_session")
        self.session = None

    async def get_detailed_unlock_methods(self) -> list[dict[str, Any]]:
        return list(self.methods)

    async def is_unlocked(self) -> bool:
        return self.unlocked

    async def add_unlock_method(self, method: str, **options: Any) -> Any:
        self._record("add_unlock_method", method, **options)
        return self.added_key_id

    async def remove_unlock_method(self, method: str, key_id: str) -> None:
        self._record("remove_unlock_method", method, key_id)

    async def test_unlock_method(self, method: str, key_id: str) -> None:
        self._record("test_unlock_method", method, key_id)

    async def change_password(self) -> None:
        self._record("change_password")

    async def get_fragment(self, path: str) -> Any:
        return self.fragments.get(path)

    async def get_raw_fragment(self, path: str) -> Any:
        if path not in self.fragments:
            return None
        return {"path": path, "envelope": "raw"}

    async def put_fragment(self, path: str, data: Any, visibility: str = "private") -> None:
        self._record("put_fragment", path, data, visibility=visibility)
        self.fragments[path] = data

    async def list_fragments(self, prefix: str = "") -> list[dict[str, Any]]:
        return [{"path": p} for p in sorted(self.fragments) if p.startswith(prefix)]

    async def delete_fragment(self, path: str) -> None:
        self._record("delete_fragment", path)
        self.fragments.pop(path, None)

    def on(self, event: str, handler: Any) -> None:
        self.handlers[event] = handler


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: pathlib.Path) -> None:
    """Keep tests away from the real config dir and IDENTA_* variables."""
    for name in ("IDENTA_PROVIDER", "IDENTA_GCP_PROJECT", "IDENTA_SDK_FACTORY", "XDG_CONFIG_HOME"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("IDENTA_CONFIG_DIR", str(tmp_path / "identa-config"))


@pytest.fixture
def config_store(tmp_path: pathlib.Path) -> ConfigStore:
    return ConfigStore(tmp_path / "config" / "config.yaml")


@pytest.fixture
def secret_store() -> InMemorySecretStore:
    return InMemorySecretStore()


@pytest.fixture
def prompter() -> FakePrompter:
    return FakePrompter()


@pytest.fixture
def fake_client() -> FakeIdentityClient:
    return FakeIdentityClient()


@pytest.fixture
def make_context(
    config_store: ConfigStore,
    prompter: FakePrompter,
    secret_store: InMemorySecretStore,
    fake_client: FakeIdentityClient,
) -> Callable[[list[str]], CommandContext]:
    """Build a ``CommandContext`` for an argv, wired to the fakes above."""

    def factory(options: SdkOptions) -> FakeIdentityClient:
        fake_client.options = options
        return fake_client

    def build(argv: list[str]) -> CommandContext:
        return CommandContext(
            args=parse_args(argv),
            config=config_store,
            prompter=prompter,
            secret_store_factory=lambda settings: secret_store,
            client_factory=factory,
        )

    return build
