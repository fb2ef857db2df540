"""Persisted configuration for the Ident.Agency CLI.

``ConfigStore`` is a flat string-to-string mapping kept in a single YAML
file (``~/.config/identa/config.yaml`` by default). It backs the API URL
resolver, ``lastUser`` bookkeeping, and secret-backend selection.

``Settings`` is the validated view used to pick a secret backend and the
SDK factory. It is layered: model defaults < persisted store < IDENTA_*
environment variables (e.g. ``IDENTA_PROVIDER=gcp``).
"""

from __future__ import annotations

import logging
import os
import pathlib
import tempfile
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from identa_cli.errors import InvalidInputError

logger = logging.getLogger(__name__)

SERVICE_NAME = "ident-agency-cli"
DEFAULT_SDK_FACTORY = "ident_agency_sdk:create_client"

# Persisted keys
API_BASE_URL_KEY = "apiBaseUrl"
LAST_USER_KEY = "lastUser"
PROVIDER_KEY = "provider"
GCP_PROJECT_KEY = "gcpProject"
SDK_FACTORY_KEY = "sdkFactory"

KNOWN_KEYS = (API_BASE_URL_KEY, LAST_USER_KEY, PROVIDER_KEY, GCP_PROJECT_KEY, SDK_FACTORY_KEY)


def default_config_path() -> pathlib.Path:
    """Return the config file path, honouring IDENTA_CONFIG_DIR and XDG_CONFIG_HOME."""
    override = os.environ.get("IDENTA_CONFIG_DIR")
    if override:
        return pathlib.Path(override).expanduser() / "config.yaml"
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = pathlib.Path(xdg).expanduser() if xdg else pathlib.Path.home() / ".config"
    return base / "identa" / "config.yaml"


# ---------------------------------------------------------------------------
# Key-value store
# ---------------------------------------------------------------------------


class ConfigStore:
    """Single-file key-value store persisted across invocations.

    Parameters
    ----------
    path:
        YAML file holding the mapping. Created on first write.
    """

    def __init__(self, path: pathlib.Path | None = None) -> None:
        self._path = path if path is not None else default_config_path()

    @property
    def path(self) -> pathlib.Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        with open(self._path) as fh:
            data = yaml.safe_load(fh)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise InvalidInputError(f"Config file is not a mapping: {self._path}")
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _write(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".config-", suffix=".yaml", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w") as fh:
                yaml.safe_dump(data, fh, default_flow_style=False, sort_keys=True)
            os.replace(tmp_name, self._path)
        except BaseException:
            pathlib.Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._read().get(key, default)

    def has(self, key: str) -> bool:
        return key in self._read()

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)
        logger.debug("Config %s updated in %s", key, self._path)

    def delete(self, key: str) -> None:
        """Remove *key*. Does nothing if the key is absent."""
        data = self._read()
        if key not in data:
            return
        del data[key]
        self._write(data)
        logger.debug("Config %s removed from %s", key, self._path)

    def as_dict(self) -> dict[str, str]:
        return dict(self._read())


# ---------------------------------------------------------------------------
# Validated settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    provider: Literal["local", "gcp"] = "local"
    gcp_project: str | None = Field(default=None, alias=GCP_PROJECT_KEY)
    sdk_factory: str = Field(default=DEFAULT_SDK_FACTORY, alias=SDK_FACTORY_KEY)
    service: str = SERVICE_NAME


_ENV_PREFIX = "IDENTA_"
_ENV_FIELDS = ("provider", "gcp_project", "sdk_factory")


def _collect_env_overrides() -> dict[str, Any]:
    """Collect IDENTA_* env vars that map onto ``Settings`` fields.

    Example: IDENTA_GCP_PROJECT=my-proj becomes {"gcp_project": "my-proj"}
    """
    overrides: dict[str, Any] = {}
    for field_name in _ENV_FIELDS:
        value = os.environ.get(_ENV_PREFIX + field_name.upper())
        if value:
            overrides[field_name] = value
    return overrides


def load_settings(store: ConfigStore) -> Settings:
    """Build ``Settings`` from defaults, the persisted store, and env vars."""
    persisted = store.as_dict()
    base: dict[str, Any] = {}
    if PROVIDER_KEY in persisted:
        base["provider"] = persisted[PROVIDER_KEY]
    if GCP_PROJECT_KEY in persisted:
        base["gcp_project"] = persisted[GCP_PROJECT_KEY]
    if SDK_FACTORY_KEY in persisted:
        base["sdk_factory"] = persisted[SDK_FACTORY_KEY]

    base.update(_collect_env_overrides())

    try:
        return Settings(**base)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise InvalidInputError(
            f"Invalid configuration for {field}: {first['msg']}",
            hint="identa config set provider local|gcp",
        ) from exc
