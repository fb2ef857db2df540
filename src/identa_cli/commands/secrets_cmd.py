"""``identa secrets`` -- arbitrary secrets in the active secret backend."""

from __future__ import annotations

import argparse
import logging
from typing import Any

from identa_cli import console
from identa_cli.commands.context import CommandContext
from identa_cli.errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)

DESCRIPTION = "Manage secrets in the configured secret provider (local keychain or GCP)"


async def get_command(ctx: CommandContext) -> None:
    store = ctx.secret_store()
    value = await store.get(ctx.settings.service, ctx.args.key)
    if value is None:
        raise NotFoundError(f"Secret not found: {ctx.args.key}")
    console.console.print(value, markup=False, highlight=False, soft_wrap=True)


async def set_command(ctx: CommandContext) -> None:
    value = ctx.args.value
    if value is None:
        value = ctx.prompter.get_password(f"Value for {ctx.args.key}")
    if not value:
        raise InvalidInputError("Secret value must not be empty")

    store = ctx.secret_store()
    await store.set(ctx.settings.service, ctx.args.key, value)
    console.success(f"Secret {ctx.args.key} stored in {store.name}")


async def delete_command(ctx: CommandContext) -> None:
    store = ctx.secret_store()
    if not ctx.assume_yes and not ctx.prompter.confirm(f"Delete secret {ctx.args.key}?"):
        console.warn("Deletion cancelled")
        return
    await store.delete(ctx.settings.service, ctx.args.key)
    console.success(f"Secret {ctx.args.key} deleted")


async def list_command(ctx: CommandContext) -> None:
    store = ctx.secret_store()
    keys = await store.list_keys(ctx.settings.service)
    if not keys:
        console.warn(f"No secrets stored in {store.name}")
        return
    console.info(f"🔐 Secrets in {store.name} ({ctx.settings.service}):")
    for key in sorted(keys):
        console.info(f"   {key}")


def register(subparsers: Any, common: argparse.ArgumentParser) -> None:
    parser = subparsers.add_parser("secrets", help=DESCRIPTION, description=DESCRIPTION)
    sub = parser.add_subparsers(dest="subcommand", required=True)

    p_get = sub.add_parser("get", parents=[common], help="Print a secret value")
    p_get.add_argument("key")
    p_get.set_defaults(func=get_command)

    p_set = sub.add_parser("set", parents=[common], help="Store a secret (prompts when VALUE is omitted)")
    p_set.add_argument("key")
    p_set.add_argument("value", nargs="?", default=None)
    p_set.set_defaults(func=set_command)

    p_del = sub.add_parser("delete", parents=[common], help="Delete a secret")
    p_del.add_argument("key")
    p_del.set_defaults(func=delete_command)

    p_list = sub.add_parser("list", parents=[common], help="List stored secret keys")
    p_list.set_defaults(func=list_command)
