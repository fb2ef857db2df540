"""Google Cloud Secret Manager backend for secret storage.

Drives the ``gcloud secrets`` command group so that authentication follows
whatever account the user has configured for gcloud. If no credentials are
available, gcloud asks the user to run ``gcloud auth login``; that is
reported as ``BackendUnavailableError`` rather than a missing secret.

Each ``(service, key)`` pair maps to one secret whose id is
``<service>--<key>`` with every character outside ``[A-Za-z0-9-]``
escaped as ``_xx`` (lower-case hex). The escaping is injective, so
distinct keys under one service never collide. Across services they can,
since ``-`` is kept and the separator is ``--``: ``("a", "-b")`` and
``("a-", "b")`` share an id. The CLI only ever uses one service.
The original key is kept in the ``identa-key`` annotation for listing.
"""

from __future__ import annotations

import json
import logging
import re

from identa_cli.errors import BackendUnavailableError
from identa_cli.secrets.cli_backend import CommandSecretStore

logger = logging.getLogger(__name__)

_SAFE_CHARS = re.compile(r"[A-Za-z0-9-]")
_SEPARATOR = "--"
_KEY_ANNOTATION = "identa-key"
_SERVICE_ANNOTATION = "identa-service"

_NOT_FOUND_MARKERS = ("NOT_FOUND", "not found")
_AUTH_MARKERS = ("gcloud auth login", "credentials", "reauthentication", "UNAUTHENTICATED")


def _escape(value: str) -> str:
    return "".join(
        ch if _SAFE_CHARS.fullmatch(ch) else "".join(f"_{b:02x}" for b in ch.encode("utf-8"))
        for ch in value
    )


def secret_id_for(service: str, key: str) -> str:
    """Return the Secret Manager id used for ``(service, key)``."""
    return f"{_escape(service)}{_SEPARATOR}{_escape(key)}"


class GcpSecretStore(CommandSecretStore):
    """Stores secrets in Google Cloud Secret Manager via ``gcloud``.

    Parameters
    ----------
    project:
        GCP project id that owns the secrets.
    """

    name = "Google Cloud Secret Manager"
    binary = "gcloud"
    install_hint = "Install the Google Cloud SDK and run `gcloud auth login`"

    def __init__(self, project: str) -> None:
        self._project = project

    def _classify(self, action: str, stderr: bytes) -> BackendUnavailableError | None:
        """Return None for a not-found response, otherwise the error to raise."""
        text = stderr.decode("utf-8", errors="replace")
        if any(marker in text for marker in _NOT_FOUND_MARKERS):
            return None
        if any(marker in text for marker in _AUTH_MARKERS):
            return BackendUnavailableError(
                f"{self.name} rejected the request: credentials are missing or expired",
                hint="Run `gcloud auth login` (and `gcloud auth application-default login`)",
            )
        return self._failure(action, stderr)

    async def get(self, service: str, key: str) -> str | None:
        returncode, stdout, stderr = await self._run(
            "secrets", "versions", "access", "latest",
            f"--secret={secret_id_for(service, key)}",
            f"--project={self._project}",
        )
        if returncode != 0:
            error = self._classify("read secret", stderr)
            if error is not None:
                raise error
            return None
        return stdout.decode("utf-8")

    async def set(self, service: str, key: str, value: str) -> None:
        secret_id = secret_id_for(service, key)
        data = value.encode("utf-8")
        returncode, _, stderr = await self._run(
            "secrets", "versions", "add", secret_id,
            "--data-file=-",
            f"--project={self._project}",
            stdin=data,
        )
        if returncode == 0:
            return

        error = self._classify("store secret", stderr)
        if error is not None:
            raise error

        # First write for this key: create the secret with its initial version
        create_args = ["secrets", "create", secret_id, "--replication-policy=automatic"]
        if ";" not in service and ";" not in key:
            create_args.append(
                f"--set-annotations=^;^{_SERVICE_ANNOTATION}={service};{_KEY_ANNOTATION}={key}"
            )
        returncode, _, stderr = await self._run(
            *create_args,
            "--data-file=-",
            f"--project={self._project}",
            stdin=data,
        )
        if returncode != 0:
            raise self._classify("create secret", stderr) or self._failure("create secret", stderr)
        logger.debug("Created secret %s in project %s", secret_id, self._project)

    async def delete(self, service: str, key: str) -> None:
        returncode, _, stderr = await self._run(
            "secrets", "delete", secret_id_for(service, key),
            "--quiet",
            f"--project={self._project}",
        )
        if returncode != 0:
            error = self._classify("delete secret", stderr)
            if error is not None:
                raise error

    async def list_keys(self, service: str) -> list[str]:
        prefix = f"{_escape(service)}{_SEPARATOR}"
        returncode, stdout, stderr = await self._run(
            "secrets", "list",
            "--format=json(name,annotations)",
            f"--project={self._project}",
        )
        if returncode != 0:
            raise self._classify("list secrets", stderr) or self._failure("list secrets", stderr)

        keys: list[str] = []
        for entry in json.loads(stdout or b"[]"):
            secret_id = entry.get("name", "").rsplit("/", 1)[-1]
            if not secret_id.startswith(prefix):
                continue
            annotations = entry.get("annotations") or {}
            keys.append(annotations.get(_KEY_ANNOTATION, secret_id[len(prefix):]))
        return keys
