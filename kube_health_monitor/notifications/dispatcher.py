"""
Notification Dispatcher

Sends one alert per failed service, isolating failures per record.
"""

import logging
import time
from typing import Callable, List, Sequence

from ..config import DEFAULT_SEND_DELAY_SECONDS
from ..models import DeliveryResult, FailedServiceRecord
from .base import Notifier

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Paced, failure-isolated alert dispatch.

    A failed send is logged and recorded, never retried. A fixed delay is
    observed between consecutive sends to avoid overwhelming the mail relay.
    """

    def __init__(
        self,
        notifier: Notifier,
        send_delay_seconds: float = DEFAULT_SEND_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.notifier = notifier
        self.send_delay_seconds = send_delay_seconds
        self._sleep = sleep

    def notify(self, records: Sequence[FailedServiceRecord]) -> List[DeliveryResult]:
        """
        Send alerts for all records.

        Returns:
            One DeliveryResult per record, in input order
        """
        results: List[DeliveryResult] = []

        for index, record in enumerate(records):
            if index > 0 and self.send_delay_seconds > 0:
                self._sleep(self.send_delay_seconds)

            workload = record.workload
            try:
                self.notifier.send(record)
            except Exception as e:
                logger.error(f"Failed to send email for {workload.namespace}/{workload.name}: {e}")
                results.append(DeliveryResult(workload=workload, error=e))
                continue

            logger.info(f"Notification sent for {workload.namespace}/{workload.name}")
            results.append(DeliveryResult(workload=workload))

        return results
