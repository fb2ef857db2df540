"""Key material providers handed to the identity SDK."""

from identa_cli.keys.device import DeviceKeyProvider, DeviceKeyRegistrar, DeviceRegistration
from identa_cli.keys.ssh import SSHKeyProvider

__all__ = ["DeviceKeyProvider", "DeviceKeyRegistrar", "DeviceRegistration", "SSHKeyProvider"]
