"""``identa keys`` -- unlock method management (list, remove, test, device)."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence
from typing import Any

from identa_cli import console
from identa_cli.commands.context import CommandContext
from identa_cli.errors import InvalidInputError, NotFoundError
from identa_cli.keys.device import DeviceKeyRegistrar
from identa_cli.models import UnlockMethod
from identa_cli.sdk import DEFAULT_SCOPES, IdentityClient

logger = logging.getLogger(__name__)

DESCRIPTION = "Authentication key management (register, list, remove, test, device)"

READ_SCOPES = ["user", "vault.read", "vault.decrypt"]


async def _load_methods(client: IdentityClient) -> list[UnlockMethod]:
    return [UnlockMethod.model_validate(m) for m in await client.get_detailed_unlock_methods()]


def find_unlock_method(
    methods: Sequence[UnlockMethod], method: str, key_id: str | None = None
) -> UnlockMethod:
    """Pick the unlock method named by *method* and optional *key_id*.

    With a key id: method and key id together, then key id alone. Without
    one: the method type, which must be unambiguous.
    """
    if key_id is not None:
        for m in methods:
            if m.method == method and m.key_id == key_id:
                return m
        for m in methods:
            if m.key_id == key_id:
                return m
        raise NotFoundError(f"Unlock method not found: {method} ({key_id})")

    matches = [m for m in methods if m.method == method]
    if len(matches) > 1:
        raise InvalidInputError(
            f"Multiple {method} methods found. Please specify KEY_ID",
            hint=", ".join(m.key_id for m in matches),
        )
    if not matches:
        raise NotFoundError(f"Unlock method not found: {method}")
    return matches[0]


def _print_method(index: int, m: UnlockMethod) -> None:
    console.info(f"   {index}. {m.icon} {m.display_name}")
    console.hint(f"   ID: {m.key_id}")
    if m.type:
        console.hint(f"   Type: {m.type}")
    if m.created_at:
        console.hint(f"   Created: {m.created_at.isoformat()}")
    if m.credential_id:
        console.hint(f"   Credential: {m.credential_id[:16]}...")
    if m.device:
        if m.device.description:
            console.hint(f"   Description: {m.device.description}")
        if m.device.platform:
            console.hint(f"   Platform: {m.device.platform}")
        if m.device.device_id:
            console.hint(f"   Device ID: {m.device.device_id}")


async def list_command(ctx: CommandContext) -> None:
    client = ctx.build_client(READ_SCOPES, password_banner=None)
    await client.ready()
    session = await ctx.require_session(client)

    console.console.print("[green]🔑 Unlock Methods[/green]")
    console.info(f"   Subject: {session.subject_id}")

    methods = await _load_methods(client)
    if not methods:
        console.warn("No unlock methods found")
        console.hint('Run "identa auth login" to initialize keychain')
    else:
        console.info(f"   Available methods: {len(methods)}")
        console.info("")
        for index, m in enumerate(methods, start=1):
            _print_method(index, m)
            console.info("")
        console.hint(f"Remove: identa keys remove {methods[0].method} {methods[0].key_id}")
        console.hint(f"Test:   identa keys test {methods[0].method} {methods[0].key_id}")

    unlocked = await client.is_unlocked()
    console.info(f"   Status: {'Unlocked' if unlocked else 'Locked'}")


async def remove_command(ctx: CommandContext) -> None:
    client = ctx.build_client(DEFAULT_SCOPES)
    await client.ready()
    await ctx.require_session(client)

    methods = await _load_methods(client)
    if not methods:
        raise NotFoundError("No unlock methods found to remove")

    target = find_unlock_method(methods, ctx.args.method, ctx.args.key_id)
    label = f"{target.method} ({target.key_id})"

    if ctx.assume_yes:
        console.info(f"🗑️  --yes flag provided, removing {label}")
    elif not ctx.prompter.confirm(f"Remove unlock method {label}?", default=False):
        console.warn("Removal cancelled")
        return

    if len(methods) == 1:
        console.console.print("[red]⚠️  WARNING: This is your last unlock method![/red]")
        if ctx.assume_yes:
            console.info("   --yes flag provided, proceeding despite warning")
        elif not ctx.prompter.confirm(
            "You will lose access to encrypted fragments. Continue?", default=False
        ):
            console.warn("Removal cancelled")
            return

    console.info(f"🗑️  Removing unlock method: {label}")
    await client.remove_unlock_method(target.method, target.key_id)
    console.success("Unlock method removed successfully")


async def test_command(ctx: CommandContext) -> None:
    client = ctx.build_client(DEFAULT_SCOPES)
    await client.ready()
    await ctx.require_session(client)

    methods = await _load_methods(client)
    if not methods:
        raise NotFoundError("No unlock methods found to test")

    method, key_id = ctx.args.method, ctx.args.key_id
    if method is None:
        index = ctx.prompter.choose(
            "Select unlock method to test",
            [f"{m.display_name} ({m.key_id})" for m in methods],
        )
        target = methods[index]
    else:
        target = find_unlock_method(methods, method, key_id)

    console.info(f"🧪 Testing unlock method: {target.method} ({target.key_id})")
    await client.test_unlock_method(target.method, target.key_id)
    console.success(f"{target.method.capitalize()} unlock method test successful")


async def device_command(ctx: CommandContext) -> None:
    client = ctx.build_client(DEFAULT_SCOPES)
    await client.ready()
    session = await ctx.require_session(client)
    console.info("👤 Current session:")
    console.info(f"   Subject: {session.subject_id}")

    registrar = DeviceKeyRegistrar(ctx.device_key_storage(), ctx.prompter)
    info = registrar.platform_info
    console.info("💻 Device information:")
    console.info(f"   Device ID: {registrar.device_id}")
    console.info(f"   Platform: {info.platform}")
    console.info(f"   Secure Store: {info.secure_store}")
    console.info("")

    default_description = f"{info.platform} Device"
    description = ctx.args.description
    if description is None:
        description = ctx.prompter.get_text(
            'Enter a description for this device (e.g., "MacBook Pro - Work")',
            default=default_description,
        )
    description = description or default_description
    console.info(f"   Description: {description}")

    registration = await registrar.register(client, description, assume_yes=ctx.assume_yes)

    console.success("Device unlock method added to keychain")
    console.info(f"   Method ID: {registration.key_id}")
    console.hint(f"Test:   identa keys test device {registration.key_id}")
    console.hint(f"Remove: identa keys remove device {registration.key_id}")
    console.warn("This device key is tied to this specific device")
    console.info("   If you lose access to this device, you will need other unlock methods")


async def register_command(ctx: CommandContext) -> None:
    api_base_url = ctx.api_base_url()
    raise InvalidInputError(
        "Passkey registration is not available in the CLI; passkeys need a browser with WebAuthn",
        hint=f"Use the web interface: {api_base_url}/example",
    )


def register(subparsers: Any, common: argparse.ArgumentParser) -> None:
    parser = subparsers.add_parser("keys", help=DESCRIPTION, description=DESCRIPTION)
    sub = parser.add_subparsers(dest="subcommand", required=True)

    p_list = sub.add_parser("list", parents=[common], help="List unlock methods in the keychain")
    p_list.set_defaults(func=list_command)

    p_remove = sub.add_parser("remove", parents=[common], help="Remove an unlock method")
    p_remove.add_argument("method", help="password, device, passkey-prf, recovery, ...")
    p_remove.add_argument("key_id", nargs="?", default=None)
    p_remove.set_defaults(func=remove_command)

    p_test = sub.add_parser("test", parents=[common], help="Test an unlock method")
    p_test.add_argument("method", nargs="?", default=None)
    p_test.add_argument("key_id", nargs="?", default=None)
    p_test.set_defaults(func=test_command)

    p_device = sub.add_parser("device", parents=[common], help="Register this device as an unlock method")
    p_device.add_argument("--description", default=None, help="Device description (prompted if omitted)")
    p_device.set_defaults(func=device_command)

    p_register = sub.add_parser("register", parents=[common], help="Register a passkey (browser only)")
    p_register.set_defaults(func=register_command)
