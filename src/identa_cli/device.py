"""Host-derived device identity.

The device id is ``sha256("<platform>-<hostname>-<username>")`` truncated
to 16 hex characters. It is stable for one machine and user account but is
not globally unique: two hosts with identical platform, hostname and user
produce the same id. It is only a lookup discriminator for device-key
secrets and a readable suffix in key ids.
"""

from __future__ import annotations

import getpass
import hashlib
import socket
import sys
from dataclasses import dataclass

DEVICE_ID_LENGTH = 16
DEVICE_KEY_ID_PREFIX = "device:"
DEVICE_KEY_SECRET_PREFIX = "device-key-"


@dataclass(frozen=True)
class PlatformInfo:
    """Human-readable platform name and the secure store it implies."""

    platform: str
    secure_store: str


_PLATFORM_INFO = {
    "darwin": PlatformInfo(platform="macOS", secure_store="Keychain"),
    "win32": PlatformInfo(platform="Windows", secure_store="DPAPI"),
    "linux": PlatformInfo(platform="Linux", secure_store="Secret Service"),
}


def derive_device_id(
    platform_name: str | None = None,
    hostname: str | None = None,
    username: str | None = None,
) -> str:
    """Return the 16-hex-character device id for this host and user.

    Each input defaults to the live value from the OS. Failures of the
    underlying OS calls propagate unchanged.
    """
    platform_name = platform_name if platform_name is not None else sys.platform
    hostname = hostname if hostname is not None else socket.gethostname()
    username = username if username is not None else getpass.getuser()

    platform_info = f"{platform_name}-{hostname}-{username}"
    digest = hashlib.sha256(platform_info.encode("utf-8")).hexdigest()
    return digest[:DEVICE_ID_LENGTH]


def get_platform_info(platform_name: str | None = None) -> PlatformInfo:
    platform_name = platform_name if platform_name is not None else sys.platform
    return _PLATFORM_INFO.get(
        platform_name, PlatformInfo(platform=platform_name, secure_store="Keytar")
    )


def make_device_key_id(device_id: str, timestamp_ms: int) -> str:
    """Build a unique key id, e.g. ``device:ab12...:1700000000000``."""
    return f"{DEVICE_KEY_ID_PREFIX}{device_id}:{timestamp_ms}"


def extract_device_id(key_id: str) -> str | None:
    """Return the device-id segment of a ``device:<id>:<ts>`` key id, or None."""
    if not key_id.startswith(DEVICE_KEY_ID_PREFIX):
        return None
    parts = key_id.split(":")
    if len(parts) < 2:
        return None
    return parts[1]


def device_key_secret_name(identifier: str) -> str:
    return f"{DEVICE_KEY_SECRET_PREFIX}{identifier}"
