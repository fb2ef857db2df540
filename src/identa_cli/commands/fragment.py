"""``identa fragment`` -- get, put, list, delete fragments."""

from __future__ import annotations

import argparse
import json
import logging
from typing import Any

from identa_cli import console
from identa_cli.commands.context import CommandContext
from identa_cli.errors import UserCancelled

logger = logging.getLogger(__name__)

DESCRIPTION = "Manage fragments (get, put, list, delete)"

VAULT_SCOPES = ["vault.read", "vault.write", "vault.decrypt"]


def parse_fragment_value(raw: str) -> Any:
    """Decode *raw* as JSON when possible, otherwise keep it as a string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _dump(data: Any) -> None:
    console.console.print_json(json.dumps(data, default=str))


async def _client(ctx: CommandContext) -> Any:
    client = ctx.build_client(["profile", *VAULT_SCOPES])
    await client.ready()
    await client.ensure_authenticated(VAULT_SCOPES)
    return client


async def get_command(ctx: CommandContext) -> None:
    path = ctx.args.path
    client = await _client(ctx)
    console.info(f"🔍 Getting fragment: {path}")

    if ctx.debug:
        raw = await client.get_raw_fragment(path)
        if raw is not None:
            console.console.print("[magenta]📦 RAW FRAGMENT ENVELOPE:[/magenta]")
            _dump(raw)

    fragment = await client.get_fragment(path)
    if fragment is None:
        console.warn(f"Fragment not found: {path}")
        return
    console.success("Fragment found:")
    _dump(fragment)


async def put_command(ctx: CommandContext) -> None:
    path = ctx.args.path
    raw_value = " ".join(ctx.args.value) if ctx.args.value else ""
    if not raw_value:
        raw_value = ctx.prompter.get_text(f"Enter value for fragment {path} (JSON or string)")
        if not raw_value:
            raise UserCancelled("No data provided, aborting.")

    data = parse_fragment_value(raw_value)
    visibility = "public" if ctx.args.public else "private"

    client = await _client(ctx)
    console.info(f"💾 Storing {visibility} fragment: {path}")
    await client.put_fragment(path, data, visibility=visibility)
    console.success(f"Fragment stored: {path}")


async def list_command(ctx: CommandContext) -> None:
    prefix = ctx.args.prefix or ""
    client = await _client(ctx)
    fragments = await client.list_fragments(prefix)
    if not fragments:
        console.warn(f"No fragments found{f' under {prefix}' if prefix else ''}")
        return
    console.info(f"📂 Fragments ({len(fragments)}):")
    for entry in fragments:
        path = entry.get("path") if isinstance(entry, dict) else getattr(entry, "path", entry)
        console.info(f"   {path}")


async def delete_command(ctx: CommandContext) -> None:
    path = ctx.args.path
    if not ctx.assume_yes and not ctx.prompter.confirm(f"Delete fragment {path}?", default=False):
        console.warn("Deletion cancelled")
        return
    client = await _client(ctx)
    await client.delete_fragment(path)
    console.success(f"Fragment deleted: {path}")


def register(subparsers: Any, common: argparse.ArgumentParser) -> None:
    parser = subparsers.add_parser("fragment", help=DESCRIPTION, description=DESCRIPTION)
    sub = parser.add_subparsers(dest="subcommand", required=True)

    p_get = sub.add_parser("get", parents=[common], help="Fetch and decrypt a fragment")
    p_get.add_argument("path")
    p_get.set_defaults(func=get_command)

    p_put = sub.add_parser("put", parents=[common], help="Store a fragment (JSON or string)")
    p_put.add_argument("path")
    p_put.add_argument("value", nargs="*")
    p_put.add_argument("--public", action="store_true", help="Store unencrypted and publicly readable")
    p_put.set_defaults(func=put_command)

    p_list = sub.add_parser("list", parents=[common], help="List fragments under a prefix")
    p_list.add_argument("prefix", nargs="?", default="")
    p_list.set_defaults(func=list_command)

    p_del = sub.add_parser("delete", parents=[common], help="Delete a fragment")
    p_del.add_argument("path")
    p_del.set_defaults(func=delete_command)
