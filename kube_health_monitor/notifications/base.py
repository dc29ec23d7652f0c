"""
Notifier Interface
"""

from abc import ABC, abstractmethod

from ..models import FailedServiceRecord


class Notifier(ABC):
    """Delivers one alert for one failed service."""

    @abstractmethod
    def send(self, record: FailedServiceRecord) -> None:
        """Send an alert; raise on failure."""
        pass
