"""Error taxonomy for the Ident.Agency CLI.

Library code raises these; only the entry point turns them into console
messages and exit codes.

    NotFoundError            -- secret, device key, or SSH key absent
    BackendUnavailableError  -- secret backend or SDK cannot be reached
    InvalidInputError        -- malformed identifier, flag value, passphrase
    UserCancelled            -- interactive prompt aborted (clean exit)
"""

from __future__ import annotations


class IdentaError(Exception):
    """Base class for every error the CLI reports to the user."""

    exit_code = 1

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class NotFoundError(IdentaError, LookupError):
    """A requested secret or key does not exist."""


class DeviceKeyNotFoundError(NotFoundError):
    def __init__(self, identifier: str) -> None:
        super().__init__(
            f"Device key not found for: {identifier}",
            hint="Register this device with `identa keys device`",
        )
        self.identifier = identifier


class SSHKeyNotFoundError(NotFoundError):
    def __init__(self, path: str) -> None:
        super().__init__(f"SSH key not found at path: {path}")
        self.path = path


class BackendUnavailableError(IdentaError):
    """The secret backend could not be reached or initialised."""


class SdkUnavailableError(BackendUnavailableError):
    """The identity SDK could not be imported or constructed."""


class InvalidInputError(IdentaError, ValueError):
    """User-supplied input is malformed."""


class NotAuthenticatedError(IdentaError):
    def __init__(self) -> None:
        super().__init__(
            "Not authenticated. Run login first.",
            hint="identa auth login",
        )


class UserCancelled(IdentaError):
    """An interactive prompt was aborted. Not a failure."""

    exit_code = 0

    def __init__(self, message: str = "Cancelled") -> None:
        super().__init__(message)
