"""Exception hierarchy shared by the registry, notification and config layers."""

from __future__ import annotations


class EcrVulnAlertError(Exception):
    """Base class for errors raised by this package."""


class ConfigurationError(EcrVulnAlertError, ValueError):
    """Raised when environment configuration is invalid."""


class RegistryError(EcrVulnAlertError):
    """Raised when a container registry call fails.

    The message is the underlying client error text, unmodified.
    """


class NotificationError(EcrVulnAlertError):
    """Raised when a chat message could not be delivered."""


__all__ = [
    "EcrVulnAlertError",
    "ConfigurationError",
    "RegistryError",
    "NotificationError",
]
