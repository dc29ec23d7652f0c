"""
Health Checker - Deployment Health Evaluation

Derives a health verdict for one deployment from the live state of its
pods and containers.
"""

import logging
from typing import Optional

from ..cluster.reader import ClusterReader
from ..config import DEFAULT_CRASH_LOOP_THRESHOLD, DEFAULT_LOG_TAIL_LINES
from ..errors import ClusterAPIError
from ..models import (
    ContainerStatus, EvaluationResult, HealthVerdict, PodSnapshot, StateKind, WorkloadRef,
)

logger = logging.getLogger(__name__)

REASON_LIST_FAILED = "Failed to list pods"
REASON_NO_PODS = "No pods found for deployment"


class HealthChecker:
    """
    Deployment health checker.

    Lists the pods selected by ``app=<name>`` and inspects them in order.
    The first failing condition decides the verdict; the primary
    container's recent logs are attached as a diagnostic excerpt.

    Example:
        checker = HealthChecker(reader, log_tail_lines=50)
        result = checker.evaluate(workload)

        if result.ok and not result.verdict.healthy:
            print(f"Unhealthy: {result.verdict.reason}")
    """

    def __init__(
        self,
        reader: ClusterReader,
        log_tail_lines: int = DEFAULT_LOG_TAIL_LINES,
        crash_loop_threshold: int = DEFAULT_CRASH_LOOP_THRESHOLD,
    ):
        """
        Initialize the health checker.

        Args:
            reader: Cluster reader used for pods and logs
            log_tail_lines: Log lines fetched for the diagnostic excerpt
            crash_loop_threshold: Restart count above which a container is
                reported as a possible crash loop
        """
        self.reader = reader
        self.log_tail_lines = log_tail_lines
        self.crash_loop_threshold = crash_loop_threshold

    def evaluate(self, workload: WorkloadRef) -> EvaluationResult:
        """
        Evaluate a deployment.

        Args:
            workload: Deployment to evaluate

        Returns:
            EvaluationResult; ``error`` is set only when pods could not be listed
        """
        try:
            pods = self.reader.list_pods(workload.namespace, f"app={workload.name}")
        except ClusterAPIError as e:
            return EvaluationResult(HealthVerdict.failed(REASON_LIST_FAILED), error=e)

        if not pods:
            return EvaluationResult(HealthVerdict.failed(REASON_NO_PODS))

        for pod in pods:
            reason = self.check_pod(pod)
            if reason:
                logger.debug(f"{workload.key}: {reason}")
                return EvaluationResult(HealthVerdict.failed(reason, self.get_pod_logs(pod)))

        return EvaluationResult(HealthVerdict.ok())

    def check_pod(self, pod: PodSnapshot) -> Optional[str]:
        """Return the first failure reason for a pod, or None if healthy."""
        if pod.phase != "Running":
            return f"Pod {pod.name} is not running (status: {pod.phase})"

        for container in pod.container_statuses:
            reason = self._check_container(container)
            if reason:
                return reason

        # Restarts are only considered once every container is up
        for container in pod.container_statuses:
            if container.restart_count > self.crash_loop_threshold:
                return (
                    f"Container {container.name} restarted {container.restart_count} times "
                    f"(possible crash loop)"
                )

        return None

    def _check_container(self, container: ContainerStatus) -> Optional[str]:
        state = container.state

        if state.kind == StateKind.WAITING:
            return f"Container {container.name} is waiting: {state.reason}"

        if state.kind == StateKind.TERMINATED:
            return (
                f"Container {container.name} terminated: {state.reason} "
                f"(exit code: {state.exit_code})"
            )

        if not container.ready:
            last = container.last_termination
            if last is not None and last.kind == StateKind.TERMINATED:
                return f"Container {container.name} not ready (last termination: {last.reason})"
            return f"Container {container.name} not ready"

        return None

    def get_pod_logs(self, pod: PodSnapshot) -> str:
        """Fetch the primary container's log tail; never raises."""
        container = pod.primary_container
        if container is None:
            return "No containers in pod"

        try:
            return self.reader.get_logs(pod.namespace, pod.name, container, self.log_tail_lines)
        except Exception as e:
            logger.warning(f"Failed to get logs for {pod.namespace}/{pod.name}: {e}")
            return f"Failed to get logs: {e}"
