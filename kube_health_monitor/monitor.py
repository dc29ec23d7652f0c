"""
kube-health-monitor - One-shot Run

Wires the sweep to the notification dispatcher for a single cron run.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import List, Optional

from .cluster.reader import ClusterReader
from .config import MonitorConfig
from .health import HealthSweep
from .models import DeliveryResult, SweepResult
from .notifications import NotificationDispatcher, Notifier

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """Sweep result plus the delivery outcome of each alert."""
    sweep: SweepResult
    deliveries: List[DeliveryResult] = field(default_factory=list)

    @property
    def delivery_failures(self) -> int:
        return sum(1 for d in self.deliveries if not d.success)


def run_once(
    config: MonitorConfig,
    reader: ClusterReader,
    notifier: Optional[Notifier] = None,
    dry_run: bool = False,
    cancel_event: Optional[threading.Event] = None,
) -> RunReport:
    """
    Run one health check pass.

    Alerts are sent only when not in dry-run mode and at least one service
    is unhealthy. A fatal error raised by the sweep propagates before any
    alert is sent.

    Args:
        config: Monitor configuration
        reader: Cluster reader
        notifier: Alert sender (required unless dry_run)
        dry_run: Evaluate and log without sending alerts
        cancel_event: Optional cancellation token for the sweep

    Returns:
        RunReport
    """
    if notifier is None and not dry_run:
        raise ValueError("a notifier is required unless dry_run is set")

    logger.info("Starting Kubernetes service health check...")
    start_time = time.monotonic()

    sweep = HealthSweep(reader, config=config, dry_run=dry_run)
    result = sweep.run(cancel_event=cancel_event)
    report = RunReport(sweep=result)

    if result.failed and not dry_run:
        logger.info(f"Found {len(result.failed)} unhealthy services, sending notifications...")
        dispatcher = NotificationDispatcher(
            notifier, send_delay_seconds=config.send_delay_seconds
        )
        report.deliveries = dispatcher.notify(result.failed)
    else:
        logger.info(result.summary())

    logger.info(f"Health check completed in {time.monotonic() - start_time:.2f}s")
    return report
