"""Command modules. Each exposes ``register(subparsers, common)``."""

from identa_cli.commands import auth, config_cmd, fragment, keys, secrets_cmd, test_sdk

COMMAND_MODULES = (auth, config_cmd, fragment, keys, secrets_cmd, test_sdk)

__all__ = ["COMMAND_MODULES"]
