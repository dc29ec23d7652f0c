"""
Health Check Module

Discovers owned deployments, evaluates their pods and aggregates the
unhealthy ones for notification.
"""

from .discovery import WorkloadDiscovery
from .checker import HealthChecker
from .sweep import HealthSweep

__all__ = [
    "WorkloadDiscovery",
    "HealthChecker",
    "HealthSweep",
]
