"""``identa config`` -- inspect and edit the persisted configuration."""

from __future__ import annotations

import argparse
import logging
from typing import Any

from identa_cli import console
from identa_cli.api_url import PRODUCTION_URL, clear_api_base_url, set_api_base_url
from identa_cli.commands.context import CommandContext
from identa_cli.config import (
    API_BASE_URL_KEY,
    GCP_PROJECT_KEY,
    KNOWN_KEYS,
    PROVIDER_KEY,
)
from identa_cli.errors import InvalidInputError

logger = logging.getLogger(__name__)

DESCRIPTION = "View and change CLI configuration (API URL, secret provider)"

_ALIASES = {
    "api-url": API_BASE_URL_KEY,
    "gcp-project": GCP_PROJECT_KEY,
}
_PROVIDERS = ("local", "gcp")


def _canonical_key(key: str) -> str:
    canonical = _ALIASES.get(key, key)
    if canonical not in KNOWN_KEYS:
        raise InvalidInputError(
            f"Unknown config key: {key}",
            hint=f"Known keys: {', '.join(KNOWN_KEYS)}",
        )
    return canonical


async def show_command(ctx: CommandContext) -> None:
    values = ctx.config.as_dict()
    console.info(f"📁 Config file: {ctx.config.path}")
    if not values:
        console.warn("No configuration set")
    for key in KNOWN_KEYS:
        if key in values:
            console.info(f"   {key}: {values[key]}")
    console.hint(f"API URL in effect: {ctx.api_base_url()}")


async def get_command(ctx: CommandContext) -> None:
    key = _canonical_key(ctx.args.key)
    value = ctx.config.get(key)
    if value is None:
        if key == API_BASE_URL_KEY:
            console.info(f"{key} is not set (default: {PRODUCTION_URL})")
        else:
            console.info(f"{key} is not set")
        return
    console.console.print(value, markup=False, highlight=False)


async def set_command(ctx: CommandContext) -> None:
    key = _canonical_key(ctx.args.key)
    value: str = ctx.args.value.strip()
    if not value:
        raise InvalidInputError(f"A value is required for {key}")

    if key == API_BASE_URL_KEY:
        value = set_api_base_url(ctx.config, value)
    else:
        if key == PROVIDER_KEY and value not in _PROVIDERS:
            raise InvalidInputError(
                f"Invalid provider: {value}",
                hint=f"Choose one of: {', '.join(_PROVIDERS)}",
            )
        ctx.config.set(key, value)
    console.success(f"{key} set to {value}")


async def unset_command(ctx: CommandContext) -> None:
    key = _canonical_key(ctx.args.key)
    if key == API_BASE_URL_KEY:
        clear_api_base_url(ctx.config)
    else:
        ctx.config.delete(key)
    console.success(f"{key} cleared")


def register(subparsers: Any, common: argparse.ArgumentParser) -> None:
    parser = subparsers.add_parser("config", help=DESCRIPTION, description=DESCRIPTION)
    sub = parser.add_subparsers(dest="subcommand", required=True)

    p_show = sub.add_parser("show", parents=[common], help="Show all settings")
    p_show.set_defaults(func=show_command)

    p_get = sub.add_parser("get", parents=[common], help="Print one setting")
    p_get.add_argument("key", help="Config key (apiBaseUrl, provider, gcpProject, ...)")
    p_get.set_defaults(func=get_command)

    p_set = sub.add_parser("set", parents=[common], help="Change one setting")
    p_set.add_argument("key", help="Config key (api-url and gcp-project aliases accepted)")
    p_set.add_argument("value", help="New value")
    p_set.set_defaults(func=set_command)

    p_unset = sub.add_parser("unset", parents=[common], help="Remove one setting")
    p_unset.add_argument("key", help="Config key")
    p_unset.set_defaults(func=unset_command)
