"""
Health Sweep - Scan Orchestration

Drives discovery and evaluation for one pass over the cluster and collects
the unhealthy deployments.
"""

import logging
import threading
import time
from typing import Optional

from ..cluster.reader import ClusterReader
from ..config import MonitorConfig
from ..errors import SweepAborted
from ..models import FailedServiceRecord, SweepResult
from ..utils.time import utc_now
from .checker import HealthChecker
from .discovery import WorkloadDiscovery

logger = logging.getLogger(__name__)


class HealthSweep:
    """
    Single-pass health sweep.

    Evaluates each discovered deployment in order. An evaluation error
    only skips that deployment; a discovery error ends the sweep. The sweep
    never sends notifications itself.

    Example:
        sweep = HealthSweep(reader, config=load_config("config.yaml"))
        result = sweep.run()
        print(result.summary())
    """

    def __init__(
        self,
        reader: ClusterReader,
        config: Optional[MonitorConfig] = None,
        discovery: Optional[WorkloadDiscovery] = None,
        checker: Optional[HealthChecker] = None,
        dry_run: bool = False,
    ):
        """
        Initialize the sweep.

        Args:
            reader: Cluster reader shared by discovery and evaluation
            config: Monitor configuration (defaults if None)
            discovery: WorkloadDiscovery instance (created if None)
            checker: HealthChecker instance (created if None)
            dry_run: Mark the result as a dry run
        """
        self.config = config or MonitorConfig()
        self.discovery = discovery or WorkloadDiscovery(
            reader, excluded_namespaces=self.config.excluded_namespaces
        )
        self.checker = checker or HealthChecker(
            reader,
            log_tail_lines=self.config.log_tail_lines,
            crash_loop_threshold=self.config.crash_loop_threshold,
        )
        self.dry_run = dry_run

    def run(
        self,
        timeout_seconds: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> SweepResult:
        """
        Run the sweep.

        Args:
            timeout_seconds: Deadline for the whole sweep (config value if None)
            cancel_event: Set from another thread to stop the sweep

        Returns:
            SweepResult with failed services in discovery order

        Raises:
            DiscoveryError: If namespaces cannot be listed
            SweepAborted: If cancelled or past the deadline
        """
        start_time = time.monotonic()
        if timeout_seconds is None:
            timeout_seconds = self.config.sweep_timeout_seconds
        deadline = start_time + timeout_seconds if timeout_seconds is not None else None

        workloads = self.discovery.discover()
        result = SweepResult(discovered=len(workloads), dry_run=self.dry_run)

        for workload in workloads:
            if cancel_event is not None and cancel_event.is_set():
                raise SweepAborted(
                    f"Sweep cancelled after {result.evaluated + result.errors} "
                    f"of {len(workloads)} deployments"
                )
            if deadline is not None and time.monotonic() > deadline:
                raise SweepAborted(
                    f"Sweep exceeded {timeout_seconds}s deadline after "
                    f"{result.evaluated + result.errors} of {len(workloads)} deployments"
                )

            try:
                evaluation = self.checker.evaluate(workload)
            except Exception as e:
                logger.error(
                    f"Error checking health for {workload.namespace}/{workload.name}: {e}"
                )
                result.errors += 1
                continue

            if not evaluation.ok:
                logger.error(
                    f"Error checking health for {workload.namespace}/{workload.name}: "
                    f"{evaluation.error}"
                )
                result.errors += 1
                continue

            result.evaluated += 1
            if not evaluation.verdict.healthy:
                logger.warning(
                    f"Unhealthy: {workload.namespace}/{workload.name}: "
                    f"{evaluation.verdict.reason}"
                )
                result.failed.append(FailedServiceRecord(
                    workload=workload,
                    verdict=evaluation.verdict,
                    check_time=utc_now(),
                ))

        result.duration_ms = (time.monotonic() - start_time) * 1000
        logger.info(
            f"Sweep finished: {result.evaluated} evaluated, {len(result.failed)} unhealthy, "
            f"{result.errors} errors ({result.duration_ms:.0f}ms)"
        )
        return result
