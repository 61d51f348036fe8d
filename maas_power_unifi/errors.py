from typing import Optional


class UnifiPowerError(RuntimeError):
    """Base class for every failure that ends a maas-power-unifi run."""


class ConfigError(UnifiPowerError):
    """Config file (or credential material) is missing or malformed."""


class NotFoundError(UnifiPowerError):
    """No port binding exists for the requested MaaS machine."""


class DeviceNotFoundError(NotFoundError):
    """The controller does not know a device with the configured MAC."""


class AuthError(UnifiPowerError):
    """The controller rejected the credentials or the session."""


class NetworkError(UnifiPowerError):
    """The controller could not be reached."""


class ControllerError(UnifiPowerError):
    """The controller answered, but refused or failed the request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
