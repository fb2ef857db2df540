"""API base URL resolution.

Priority, highest first:
    1. ``--api-url`` flag
    2. ``apiBaseUrl`` in the persisted config
    3. Production default (https://www.ident.agency)

Exactly one trailing slash is stripped from the chosen value.
"""

from __future__ import annotations

import logging

from identa_cli import console
from identa_cli.config import API_BASE_URL_KEY, ConfigStore

logger = logging.getLogger(__name__)

PRODUCTION_URL = "https://www.ident.agency"


def _strip_trailing_slash(url: str) -> str:
    return url[:-1] if url.endswith("/") else url


def resolve_api_base_url(
    config: ConfigStore,
    flag_value: str | None = None,
    debug: bool = False,
) -> str:
    """Return the API base URL for this invocation.

    Parameters
    ----------
    config:
        Persisted configuration consulted when no flag is given.
    flag_value:
        Value of ``--api-url``; empty strings count as absent.
    debug:
        When true, print the resolved URL and its source.
    """
    if flag_value:
        resolved, source = flag_value, "flag"
    elif config.has(API_BASE_URL_KEY):
        resolved, source = config.get(API_BASE_URL_KEY) or "", "config"
    else:
        resolved, source = PRODUCTION_URL, "default"

    resolved = _strip_trailing_slash(resolved)

    logger.debug("Resolved API URL %s from %s", resolved, source)
    if debug:
        console.debug(f"API URL: {resolved} (from {source})")
    return resolved


def set_api_base_url(config: ConfigStore, url: str) -> str:
    """Persist *url* as ``apiBaseUrl`` and return the stored value."""
    clean = _strip_trailing_slash(url)
    config.set(API_BASE_URL_KEY, clean)
    return clean


def get_config_api_base_url(config: ConfigStore) -> str | None:
    return config.get(API_BASE_URL_KEY)


def clear_api_base_url(config: ConfigStore) -> None:
    config.delete(API_BASE_URL_KEY)
