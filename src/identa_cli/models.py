"""Pydantic models for data exchanged with the identity SDK.

All models accept ``from_attributes=True`` so SDK objects with matching
attributes validate as well as plain dicts.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Session(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    subject_id: str
    subject_hash: str | None = None
    scopes: list[str] = Field(default_factory=list)


class DeviceInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    description: str | None = None
    platform: str | None = None
    device_id: str | None = None


class UnlockMethod(BaseModel):
    """One credential able to unlock the keychain (password, device, passkey...)."""

    model_config = ConfigDict(from_attributes=True)

    method: str
    key_id: str
    type: str | None = None
    created_at: datetime | None = None
    credential_id: str | None = None
    device: DeviceInfo | None = None

    @property
    def icon(self) -> str:
        if self.method == "password":
            return "🔒"
        if self.method.startswith("passkey"):
            return "🔑"
        if self.method == "recovery":
            return "🔄"
        if self.method == "device":
            return "💻"
        if self.method == "ssh":
            return "🗝️"
        return "❓"

    @property
    def display_name(self) -> str:
        if self.method == "device" and self.device and self.device.description:
            return f"device - {self.device.description}"
        return self.method


class SshKeyMaterial(BaseModel):
    """Private key text and optional passphrase, returned per call, never cached."""

    model_config = ConfigDict(frozen=True)

    private_key_material: str
    passphrase: str | None = None
