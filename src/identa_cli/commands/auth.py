"""``identa auth`` -- login, logout, profile, change-password."""

from __future__ import annotations

import argparse
import logging
from typing import Any

from identa_cli import console
from identa_cli.commands.context import CommandContext
from identa_cli.config import LAST_USER_KEY
from identa_cli.errors import InvalidInputError

logger = logging.getLogger(__name__)

DESCRIPTION = "Authentication commands (login, logout, profile, change-password)"

DEFAULT_LOGIN_SCOPES = ["user"]


def parse_timeout_ms(raw: str | None) -> int | None:
    """Convert ``--timeout`` seconds to milliseconds; None when not given."""
    if raw is None:
        return None
    try:
        seconds = int(raw)
    except ValueError:
        seconds = 0
    if seconds <= 0:
        raise InvalidInputError("Invalid timeout value. Must be a positive number in seconds.")
    return seconds * 1000


def parse_scopes(raw: str | None) -> list[str]:
    if not raw:
        return list(DEFAULT_LOGIN_SCOPES)
    return [scope for scope in raw.split(" ") if scope.strip()]


async def login_command(ctx: CommandContext) -> None:
    scopes = parse_scopes(ctx.args.scope)
    timeout_ms = parse_timeout_ms(ctx.args.timeout)
    if ctx.debug:
        console.debug(f"Using scopes: {', '.join(scopes)}")
        if timeout_ms:
            console.debug(f"Authentication timeout: {timeout_ms // 1000} seconds")

    client = ctx.build_client(
        DEFAULT_LOGIN_SCOPES,
        password_banner="🔐 Keychain setup required",
        with_key_storage=True,
    )
    await client.ready()

    console.info("🌐 Starting OAuth2/PKCE authentication...")
    await client.ensure_authenticated(scopes, timeout_ms)

    if client.get_session() is None:
        console.warn("Authentication completed but no session found")
        return

    session = await ctx.require_session(client)
    console.success("Successfully authenticated!")
    console.info(f"   Subject: {session.subject_id}")
    if session.subject_hash:
        console.info(f"   Subject Hash: {session.subject_hash}")
    console.info(f"   Scopes: {', '.join(session.scopes)}")

    ctx.config.set(LAST_USER_KEY, session.subject_id)
    logger.debug("Stored last user %s", session.subject_id)


async def logout_command(ctx: CommandContext) -> None:
    client = ctx.build_client([], password_banner=None)
    await client.ready()

    if client.get_session() is None:
        console.info("ℹ️  You are not currently logged in")
        return

    session = await ctx.require_session(client)
    console.info("Current session:")
    console.info(f"  Subject: {session.subject_id}")
    console.info(f"  Scopes: {', '.join(session.scopes)}")

    force = getattr(ctx.args, "force", False) or ctx.assume_yes
    if not force and not ctx.prompter.confirm("Are you sure you want to logout?", default=False):
        console.warn("Logout cancelled")
        return

    console.info("🚪 Clearing session...")
    await client.clear_session()

    last_user = ctx.config.get(LAST_USER_KEY)
    if last_user is not None:
        ctx.config.delete(LAST_USER_KEY)
        logger.debug("Cleared last user %s", last_user)

    console.success("Successfully logged out!")
    console.hint('Use "identa auth login" to authenticate again')


async def profile_command(ctx: CommandContext) -> None:
    api_base_url = ctx.api_base_url()
    client = ctx.build_client(["user"])
    await client.ready()
    session = await ctx.require_session(client)

    console.info("👤 Profile")
    console.info(f"   Subject: {session.subject_id}")
    if session.subject_hash:
        console.info(f"   Subject Hash: {session.subject_hash}")
    console.info(f"   Scopes: {', '.join(session.scopes) or '(none)'}")
    console.info(f"   API URL: {api_base_url}")
    last_user = ctx.config.get(LAST_USER_KEY)
    if last_user:
        console.info(f"   Last user: {last_user}")
    unlocked = await client.is_unlocked()
    console.info(f"   Keychain: {'Unlocked' if unlocked else 'Locked'}")


async def change_password_command(ctx: CommandContext) -> None:
    client = ctx.build_client(["user", "vault.read", "vault.write", "vault.decrypt"])
    await client.ready()
    await ctx.require_session(client)
    await client.change_password()
    console.success("Keychain password changed")


def _add_login_parser(target: Any, common: argparse.ArgumentParser) -> None:
    p_login = target.add_parser("login", parents=[common], help="Authenticate using OAuth2/PKCE")
    p_login.add_argument("--scope", default=None, help='Space-separated scopes (default: "user")')
    p_login.add_argument("--timeout", default=None, help="Authentication timeout in seconds")
    p_login.set_defaults(func=login_command)


def _add_logout_parser(target: Any, common: argparse.ArgumentParser) -> None:
    p_logout = target.add_parser("logout", parents=[common], help="Clear the stored session")
    p_logout.add_argument("--force", action="store_true", help="Skip the confirmation prompt")
    p_logout.set_defaults(func=logout_command)


def _add_profile_parser(target: Any, common: argparse.ArgumentParser) -> None:
    p_profile = target.add_parser("profile", parents=[common], help="Show session information")
    p_profile.set_defaults(func=profile_command)


def register(subparsers: Any, common: argparse.ArgumentParser) -> None:
    parser = subparsers.add_parser("auth", help=DESCRIPTION, description=DESCRIPTION)
    sub = parser.add_subparsers(dest="subcommand", required=True)

    _add_login_parser(sub, common)
    _add_logout_parser(sub, common)
    _add_profile_parser(sub, common)

    p_change = sub.add_parser("change-password", parents=[common], help="Change your keychain password")
    p_change.set_defaults(func=change_password_command)

    # Top-level shortcuts: `identa login`, `identa logout`, `identa profile`
    _add_login_parser(subparsers, common)
    _add_logout_parser(subparsers, common)
    _add_profile_parser(subparsers, common)
