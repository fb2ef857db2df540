"""Integration tests for command handlers, wired to in-memory fakes."""

from __future__ import annotations

import pytest

from identa_cli.__main__ import run_command
from identa_cli.commands.test_sdk import AUTOMATED_PASSWORD
from identa_cli.config import LAST_USER_KEY, SERVICE_NAME
from identa_cli.errors import (
    IdentaError,
    InvalidInputError,
    NotAuthenticatedError,
    NotFoundError,
    UserCancelled,
)
from identa_cli.keys.device import DeviceKeyProvider
from identa_cli.keys.ssh import SSHKeyProvider
from identa_cli.prompts import PasswordProvider

METHODS = [
    {"method": "password", "key_id": "pw-1", "type": "password"},
    {"method": "device", "key_id": "device:abc:1", "device": {"description": "Laptop"}},
    {"method": "device", "key_id": "device:def:2", "device": {"description": "Desktop"}},
]


async def _run(make_context, argv: list[str]):
    ctx = make_context(argv)
    await run_command(ctx.args, ctx)
    return ctx


# ---------------------------------------------------------------------------
# SDK wiring
# ---------------------------------------------------------------------------


class TestClientWiring:
    @pytest.mark.asyncio
    async def test_options_carry_providers(self, make_context, fake_client) -> None:
        await _run(make_context, ["--api-url", "http://localhost:3000/", "--ssh-key", "~/k", "keys", "list"])
        options = fake_client.options
        assert options.api_base_url == "http://localhost:3000"
        assert options.client_id == "ident-cli"
        assert isinstance(options.password_provider, PasswordProvider)
        assert isinstance(options.device_key_provider, DeviceKeyProvider)
        assert isinstance(options.ssh_key_provider, SSHKeyProvider)
        assert options.device_key_storage_provider is None

    @pytest.mark.asyncio
    async def test_not_authenticated(self, make_context, fake_client) -> None:
        fake_client.session = None
        with pytest.raises(NotAuthenticatedError):
            await _run(make_context, ["keys", "list"])


# ---------------------------------------------------------------------------
# auth
# ---------------------------------------------------------------------------


class TestAuthCommands:
    @pytest.mark.asyncio
    async def test_login_records_last_user(self, make_context, fake_client, config_store) -> None:
        await _run(make_context, ["login"])
        assert fake_client.called("ensure_authenticated") == [((["user"], None), {})]
        assert fake_client.options.device_key_storage_provider is not None
        assert config_store.get(LAST_USER_KEY) == "user-123"

    @pytest.mark.asyncio
    async def test_login_scopes_and_timeout(self, make_context, fake_client) -> None:
        await _run(make_context, ["auth", "login", "--scope", "user vault.read", "--timeout", "30"])
        assert fake_client.called("ensure_authenticated") == [((["user", "vault.read"], 30000), {})]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("timeout", ["0", "-5", "soon"])
    async def test_login_rejects_bad_timeout(self, make_context, fake_client, timeout: str) -> None:
        with pytest.raises(InvalidInputError):
            await _run(make_context, ["login", "--timeout", timeout])
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_logout_force(self, make_context, fake_client, config_store, prompter) -> None:
        config_store.set(LAST_USER_KEY, "user-123")
        await _run(make_context, ["logout", "--force"])
        assert fake_client.called("clear_session") == [((), {})]
        assert config_store.get(LAST_USER_KEY) is None
        assert prompter.prompts == []

    @pytest.mark.asyncio
    async def test_logout_declined(self, make_context, fake_client, prompter) -> None:
        prompter.confirms = [False]
        await _run(make_context, ["auth", "logout"])
        assert fake_client.called("clear_session") == []

    @pytest.mark.asyncio
    async def test_logout_when_logged_out(self, make_context, fake_client) -> None:
        fake_client.session = None
        await _run(make_context, ["logout", "--force"])
        assert fake_client.called("clear_session") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("argv", [["profile"], ["auth", "profile"]])
    async def test_profile(
        self, make_context, fake_client, config_store, argv: list[str], capsys: pytest.CaptureFixture[str]
    ) -> None:
        config_store.set(LAST_USER_KEY, "user-123")
        fake_client.unlocked = False
        await _run(make_context, argv)
        out = capsys.readouterr().out
        assert "Subject: user-123" in out
        assert "Last user: user-123" in out
        assert "Keychain: Locked" in out

    @pytest.mark.asyncio
    async def test_change_password(self, make_context, fake_client) -> None:
        await _run(make_context, ["auth", "change-password"])
        assert fake_client.called("change_password") == [((), {})]


# ---------------------------------------------------------------------------
# keys
# ---------------------------------------------------------------------------


class TestKeysCommands:
    @pytest.mark.asyncio
    async def test_remove_by_key_id(self, make_context, fake_client) -> None:
        fake_client.methods = list(METHODS)
        await _run(make_context, ["-y", "keys", "remove", "device", "device:def:2"])
        assert fake_client.called("remove_unlock_method") == [(("device", "device:def:2"), {})]

    @pytest.mark.asyncio
    async def test_remove_unique_method_without_key_id(self, make_context, fake_client, prompter) -> None:
        fake_client.methods = list(METHODS)
        prompter.confirms = [True]
        await _run(make_context, ["keys", "remove", "password"])
        assert fake_client.called("remove_unlock_method") == [(("password", "pw-1"), {})]

    @pytest.mark.asyncio
    async def test_remove_ambiguous_method(self, make_context, fake_client) -> None:
        fake_client.methods = list(METHODS)
        with pytest.raises(InvalidInputError, match="Multiple device methods"):
            await _run(make_context, ["-y", "keys", "remove", "device"])
        assert fake_client.called("remove_unlock_method") == []

    @pytest.mark.asyncio
    async def test_remove_unknown_key_id(self, make_context, fake_client) -> None:
        fake_client.methods = list(METHODS)
        with pytest.raises(NotFoundError):
            await _run(make_context, ["-y", "keys", "remove", "device", "device:zzz:9"])
        assert fake_client.called("remove_unlock_method") == []

    @pytest.mark.asyncio
    async def test_remove_last_method_needs_second_confirm(
        self, make_context, fake_client, prompter
    ) -> None:
        fake_client.methods = [METHODS[0]]
        prompter.confirms = [True, False]
        await _run(make_context, ["keys", "remove", "password"])
        assert fake_client.called("remove_unlock_method") == []
        assert len(prompter.prompts) == 2

    @pytest.mark.asyncio
    async def test_remove_with_no_methods(self, make_context, fake_client) -> None:
        with pytest.raises(NotFoundError):
            await _run(make_context, ["-y", "keys", "remove", "password"])

    @pytest.mark.asyncio
    async def test_test_prompts_for_method(self, make_context, fake_client, prompter) -> None:
        fake_client.methods = list(METHODS)
        prompter.choices = [2]
        await _run(make_context, ["keys", "test"])
        assert fake_client.called("test_unlock_method") == [(("device", "device:def:2"), {})]

    @pytest.mark.asyncio
    async def test_device_registers_key(self, make_context, fake_client, secret_store) -> None:
        await _run(make_context, ["keys", "device", "--description", "Work laptop"])

        [(args, kwargs)] = fake_client.called("add_unlock_method")
        assert args == ("device",)
        assert kwargs["description"] == "Work laptop"
        assert kwargs["key_id"].startswith(f"device:{kwargs['device_id']}:")
        assert (SERVICE_NAME, f"device-key-{kwargs['device_id']}") in secret_store.data

    @pytest.mark.asyncio
    async def test_device_default_description(self, make_context, fake_client, prompter) -> None:
        await _run(make_context, ["keys", "device"])
        [(_, kwargs)] = fake_client.called("add_unlock_method")
        assert kwargs["description"].endswith(" Device")

    @pytest.mark.asyncio
    async def test_device_replace_declined(
        self, make_context, fake_client, prompter, secret_store
    ) -> None:
        await _run(make_context, ["keys", "device", "--description", "first"])
        prompter.confirms = [False]
        with pytest.raises(UserCancelled):
            await _run(make_context, ["keys", "device", "--description", "second"])
        assert len(fake_client.called("add_unlock_method")) == 1

    @pytest.mark.asyncio
    async def test_register_points_at_web(self, make_context) -> None:
        with pytest.raises(InvalidInputError) as excinfo:
            await _run(make_context, ["--api-url", "http://localhost:3000", "keys", "register"])
        assert excinfo.value.hint == "Use the web interface: http://localhost:3000/example"


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


class TestConfigCommands:
    @pytest.mark.asyncio
    async def test_set_provider(self, make_context, config_store) -> None:
        await _run(make_context, ["config", "set", "provider", "gcp"])
        assert config_store.get("provider") == "gcp"

    @pytest.mark.asyncio
    async def test_set_invalid_provider(self, make_context, config_store) -> None:
        with pytest.raises(InvalidInputError):
            await _run(make_context, ["config", "set", "provider", "vault"])
        assert config_store.get("provider") is None

    @pytest.mark.asyncio
    async def test_set_empty_value(self, make_context) -> None:
        with pytest.raises(InvalidInputError):
            await _run(make_context, ["config", "set", "gcp-project", "  "])

    @pytest.mark.asyncio
    async def test_unset(self, make_context, config_store) -> None:
        config_store.set("apiBaseUrl", "http://localhost:3000")
        await _run(make_context, ["config", "unset", "api-url"])
        assert not config_store.has("apiBaseUrl")


# ---------------------------------------------------------------------------
# secrets
# ---------------------------------------------------------------------------


class TestSecretsCommands:
    @pytest.mark.asyncio
    async def test_set_get_list_delete(
        self, make_context, secret_store, capsys: pytest.CaptureFixture[str]
    ) -> None:
        await _run(make_context, ["secrets", "set", "token", "abc"])
        assert secret_store.data == {(SERVICE_NAME, "token"): "abc"}

        capsys.readouterr()
        await _run(make_context, ["secrets", "get", "token"])
        assert capsys.readouterr().out.strip() == "abc"

        await _run(make_context, ["secrets", "list"])
        assert "token" in capsys.readouterr().out

        await _run(make_context, ["-y", "secrets", "delete", "token"])
        assert secret_store.data == {}

    @pytest.mark.asyncio
    async def test_set_prompts_for_value(self, make_context, secret_store, prompter) -> None:
        prompter.passwords = ["from-prompt"]
        await _run(make_context, ["secrets", "set", "token"])
        assert secret_store.data[(SERVICE_NAME, "token")] == "from-prompt"

    @pytest.mark.asyncio
    async def test_get_missing(self, make_context) -> None:
        with pytest.raises(NotFoundError):
            await _run(make_context, ["secrets", "get", "missing"])

    @pytest.mark.asyncio
    async def test_delete_declined(self, make_context, secret_store, prompter) -> None:
        secret_store.data[(SERVICE_NAME, "token")] = "abc"
        prompter.confirms = [False]
        await _run(make_context, ["secrets", "delete", "token"])
        assert (SERVICE_NAME, "token") in secret_store.data


# ---------------------------------------------------------------------------
# fragment
# ---------------------------------------------------------------------------


class TestFragmentCommands:
    @pytest.mark.asyncio
    async def test_put_parses_json(self, make_context, fake_client) -> None:
        await _run(make_context, ["fragment", "put", "profile/name", '{"first": "Ada"}'])
        assert fake_client.called("put_fragment") == [
            (("profile/name", {"first": "Ada"}), {"visibility": "private"})
        ]

    @pytest.mark.asyncio
    async def test_put_public_string(self, make_context, fake_client) -> None:
        await _run(make_context, ["fragment", "put", "bio", "hello", "world", "--public"])
        assert fake_client.called("put_fragment") == [(("bio", "hello world"), {"visibility": "public"})]

    @pytest.mark.asyncio
    async def test_put_without_value_cancels(self, make_context, fake_client) -> None:
        with pytest.raises(UserCancelled):
            await _run(make_context, ["fragment", "put", "bio"])
        assert fake_client.called("put_fragment") == []

    @pytest.mark.asyncio
    async def test_delete(self, make_context, fake_client) -> None:
        fake_client.fragments["bio"] = "x"
        await _run(make_context, ["-y", "fragment", "delete", "bio"])
        assert fake_client.fragments == {}


# ---------------------------------------------------------------------------
# test-sdk
# ---------------------------------------------------------------------------


class TestSdkCheckCommand:
    @pytest.mark.asyncio
    async def test_round_trip_and_cleanup(self, make_context, fake_client) -> None:
        await _run(make_context, ["test-sdk"])

        puts = fake_client.called("put_fragment")
        assert [(args[0], kwargs["visibility"]) for args, kwargs in puts] == [
            ("test/sdk/public-string", "public"),
            ("test/sdk/private-object", "private"),
            ("test/sdk/public-number", "public"),
        ]
        assert puts[2][0][1] == 42
        assert fake_client.called("ensure_authenticated") == [
            ((["profile", "vault.read", "vault.write", "vault.decrypt"], None), {})
        ]
        assert [args[0] for args, _ in fake_client.called("delete_fragment")] == [
            args[0] for args, _ in puts
        ]
        assert fake_client.fragments == {}
        assert isinstance(fake_client.options.password_provider, PasswordProvider)

    @pytest.mark.asyncio
    async def test_automated_password(self, make_context, fake_client, prompter) -> None:
        await _run(make_context, ["test-sdk", "--automated"])
        provider = fake_client.options.password_provider
        assert provider.get_password("Create a keychain password") == AUTOMATED_PASSWORD
        assert prompter.prompts == []

    @pytest.mark.asyncio
    async def test_mismatch_fails_after_cleanup(self, make_context, fake_client) -> None:
        async def tampered(path: str) -> str:
            return "tampered"

        fake_client.get_fragment = tampered
        with pytest.raises(IdentaError, match="3 fragment"):
            await _run(make_context, ["test-sdk"])
        assert len(fake_client.called("delete_fragment")) == 3
        assert fake_client.fragments == {}

    @pytest.mark.asyncio
    async def test_requires_session(self, make_context, fake_client) -> None:
        fake_client.session = None
        with pytest.raises(NotAuthenticatedError):
            await _run(make_context, ["test-sdk"])
        assert fake_client.called("put_fragment") == []
