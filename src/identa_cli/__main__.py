"""Ident.Agency CLI -- entry point.

Usage::

    identa [--api-url URL] [--ssh-key PATH] [--debug] [--yes] COMMAND ...

Commands:
    auth      login | logout | profile | change-password
    login     shortcut for ``auth login``
    logout    shortcut for ``auth logout``
    config    show | get | set | unset
    fragment  get | put | list | delete
    keys      list | remove | test | device | register
    secrets   get | set | delete | list

Every command runs once and exits. Errors raised by library code are
reported here and mapped to the process exit status: 0 on success or
user cancellation, 1 on failure, 2 on usage errors (argparse).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from identa_cli import __version__, console
from identa_cli.commands import COMMAND_MODULES
from identa_cli.commands.context import CommandContext
from identa_cli.config import ConfigStore
from identa_cli.errors import IdentaError, UserCancelled
from identa_cli.prompts import ConsolePrompter, CredentialPrompter

logger = logging.getLogger("identa_cli")


# ---------------------------------------------------------------------------
# Integration seams -- module-level so tests can patch them individually.
# ---------------------------------------------------------------------------


def create_config_store() -> ConfigStore:
    return ConfigStore()


def create_prompter() -> CredentialPrompter:
    return ConsolePrompter()


# ---------------------------------------------------------------------------
# CLI argument parsing
# ---------------------------------------------------------------------------


def _add_global_flags(parser: argparse.ArgumentParser, suppress: bool) -> None:
    """Attach the global flags.

    Subcommand copies use SUPPRESS defaults so a flag given before the
    command name is not reset by the subparser.
    """

    def default(value: object) -> object:
        return argparse.SUPPRESS if suppress else value

    parser.add_argument("--api-url", dest="api_url", default=default(None), help="API base URL")
    parser.add_argument("--ssh-key", dest="ssh_key", default=default(None), help="Path to SSH private key")
    parser.add_argument("--debug", action="store_true", default=default(False), help="Enable debug output")
    parser.add_argument(
        "-y", "--yes", action="store_true", default=default(False),
        help="Skip confirmation prompts (auto-confirm destructive operations)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="identa",
        description="Ident.Agency command-line client",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    _add_global_flags(parser, suppress=False)

    common = argparse.ArgumentParser(add_help=False)
    _add_global_flags(common, suppress=True)

    subparsers = parser.add_subparsers(dest="command", required=True)
    for module in COMMAND_MODULES:
        module.register(subparsers, common)
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Parameters
    ----------
    argv:
        Argument list.  Defaults to ``sys.argv[1:]`` when ``None``.
    """
    return build_parser().parse_args(argv)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


async def run_command(args: argparse.Namespace, ctx: CommandContext | None = None) -> None:
    """Run the handler selected by *args*."""
    if ctx is None:
        ctx = CommandContext(args=args, config=create_config_store(), prompter=create_prompter())
    if ctx.debug:
        console.debug(f"Running {args.command} command: {getattr(args, 'subcommand', '') or ''}")
    await args.func(ctx)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI args, run the command, and exit with its status."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        asyncio.run(run_command(args))
    except (UserCancelled, KeyboardInterrupt) as exc:
        message = exc.message if isinstance(exc, UserCancelled) else "Interrupted by user"
        console.warn(message)
        sys.exit(0)
    except IdentaError as exc:
        console.error(exc.message)
        if exc.hint:
            console.hint(exc.hint)
        if args.debug:
            logger.debug("Command failed", exc_info=True)
        sys.exit(exc.exit_code)
    except Exception as exc:
        console.error(f"Command failed: {exc}")
        if args.debug:
            console.err_console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
