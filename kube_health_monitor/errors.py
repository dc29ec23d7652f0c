"""
Error taxonomy for the health sweep.

Fatal errors subclass MonitorError and end the process with a non-zero
status. Per-item errors (ClusterAPIError, NotificationError) are logged and
skipped by the component that catches them.
"""

from typing import Optional


class MonitorError(Exception):
    """Base class for fatal errors."""


class ConfigError(MonitorError):
    """Configuration file missing, unreadable or invalid."""


class ClusterClientError(MonitorError):
    """Kubernetes client could not be constructed."""


class DiscoveryError(MonitorError):
    """Namespaces could not be listed; there is no meaningful partial result."""


class SweepAborted(MonitorError):
    """Sweep was cancelled or ran past its deadline."""


class ClusterAPIError(Exception):
    """A single cluster read failed."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class NotificationError(Exception):
    """An alert could not be rendered or delivered."""
