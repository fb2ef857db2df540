"""Pluggable secret storage.

``create_secret_store`` returns the single active backend for this
invocation, chosen by the ``provider`` setting:

    local -- macOS Keychain on darwin, Secret Service (libsecret) elsewhere
    gcp   -- Google Cloud Secret Manager in ``gcpProject``
"""

from __future__ import annotations

import logging
import sys

from identa_cli.config import Settings
from identa_cli.errors import BackendUnavailableError
from identa_cli.secrets.store import SecretStore

logger = logging.getLogger(__name__)

__all__ = ["SecretStore", "create_secret_store"]


def create_secret_store(settings: Settings, platform_name: str | None = None) -> SecretStore:
    """Create the secret store selected by *settings*."""
    platform_name = platform_name if platform_name is not None else sys.platform

    if settings.provider == "gcp":
        if not settings.gcp_project:
            raise BackendUnavailableError(
                "The gcp secret provider needs a project id",
                hint="identa config set gcpProject PROJECT_ID",
            )
        from identa_cli.secrets.gcp import GcpSecretStore

        logger.debug("Using Google Cloud Secret Manager (project %s)", settings.gcp_project)
        return GcpSecretStore(project=settings.gcp_project)

    if platform_name == "darwin":
        from identa_cli.secrets.keychain import KeychainStore

        logger.debug("Using macOS Keychain secret store")
        return KeychainStore()

    from identa_cli.secrets.secret_service import SecretServiceStore

    logger.debug("Using Secret Service secret store")
    return SecretServiceStore()
