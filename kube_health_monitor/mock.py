"""
kube-health-monitor - Mock Mode

In-memory cluster and notifier for demos and tests without a real cluster.
"""

from typing import Dict, List, Optional, Tuple

from .cluster.reader import ClusterReader
from .errors import ClusterAPIError, NotificationError
from .models import (
    ContainerState, ContainerStatus, FailedServiceRecord, PodSnapshot, Workload,
)
from .notifications.base import Notifier


class InMemoryClusterReader(ClusterReader):
    """
    ClusterReader over a static, in-memory cluster snapshot.

    Pods are matched by ``app=<name>`` selectors only. Individual reads can
    be made to fail by registering them in ``failing_namespaces``,
    ``failing_selectors`` or ``failing_logs``.

    Example:
        reader = InMemoryClusterReader()
        reader.add_namespace("prod")
        reader.add_workload("prod", "billing", {"service_owner": "a@x", "owner_dl": "t@x"})
        reader.add_pod("prod", "billing", running_pod("billing-1", "prod"))
    """

    def __init__(self):
        self.namespaces: List[str] = []
        self.workloads: Dict[str, List[Workload]] = {}
        self.pods: Dict[Tuple[str, str], List[PodSnapshot]] = {}
        self.logs: Dict[Tuple[str, str, str], str] = {}

        self.namespace_error: Optional[str] = None
        self.failing_namespaces: Dict[str, str] = {}
        self.failing_selectors: Dict[Tuple[str, str], str] = {}
        self.failing_logs: Dict[Tuple[str, str], str] = {}

        # Call log for assertions
        self.calls: List[Tuple] = []

    def add_namespace(self, namespace: str) -> None:
        if namespace not in self.namespaces:
            self.namespaces.append(namespace)
            self.workloads.setdefault(namespace, [])

    def add_workload(
        self,
        namespace: str,
        name: str,
        annotations: Optional[Dict[str, str]] = None,
    ) -> None:
        self.add_namespace(namespace)
        self.workloads[namespace].append(Workload(name=name, annotations=dict(annotations or {})))

    def add_pod(self, namespace: str, app: str, pod: PodSnapshot) -> None:
        self.pods.setdefault((namespace, f"app={app}"), []).append(pod)

    def set_logs(self, namespace: str, pod_name: str, container: str, text: str) -> None:
        self.logs[(namespace, pod_name, container)] = text

    def list_namespaces(self) -> List[str]:
        self.calls.append(("list_namespaces",))
        if self.namespace_error:
            raise ClusterAPIError(self.namespace_error)
        return list(self.namespaces)

    def list_workloads(self, namespace: str) -> List[Workload]:
        self.calls.append(("list_workloads", namespace))
        if namespace in self.failing_namespaces:
            raise ClusterAPIError(self.failing_namespaces[namespace])
        return list(self.workloads.get(namespace, []))

    def list_pods(self, namespace: str, label_selector: str) -> List[PodSnapshot]:
        self.calls.append(("list_pods", namespace, label_selector))
        key = (namespace, label_selector)
        if key in self.failing_selectors:
            raise ClusterAPIError(self.failing_selectors[key])
        return list(self.pods.get(key, []))

    def get_logs(
        self,
        namespace: str,
        pod_name: str,
        container: str,
        tail_lines: int,
    ) -> str:
        self.calls.append(("get_logs", namespace, pod_name, container, tail_lines))
        if (namespace, pod_name) in self.failing_logs:
            raise ClusterAPIError(self.failing_logs[(namespace, pod_name)])
        text = self.logs.get((namespace, pod_name, container), "")
        lines = text.splitlines()
        return "\n".join(lines[-tail_lines:]) if tail_lines > 0 else text

    def count(self, call_name: str) -> int:
        return sum(1 for c in self.calls if c[0] == call_name)


class RecordingNotifier(Notifier):
    """Notifier that records alerts instead of sending them."""

    def __init__(self, fail_for: Optional[List[str]] = None):
        self.sent: List[FailedServiceRecord] = []
        self.attempts: List[FailedServiceRecord] = []
        self.fail_for = set(fail_for or [])

    def send(self, record: FailedServiceRecord) -> None:
        self.attempts.append(record)
        if record.workload.key in self.fail_for:
            raise NotificationError(f"simulated delivery failure for {record.workload.key}")
        self.sent.append(record)


def running_pod(
    name: str,
    namespace: str,
    container: str = "app",
    restart_count: int = 0,
) -> PodSnapshot:
    """A Running pod with one Ready container."""
    return PodSnapshot(
        name=name,
        namespace=namespace,
        phase="Running",
        container_statuses=[
            ContainerStatus(name=container, ready=True, restart_count=restart_count),
        ],
        containers=[container],
    )


def waiting_pod(
    name: str,
    namespace: str,
    reason: str = "CrashLoopBackOff",
    container: str = "app",
    restart_count: int = 0,
) -> PodSnapshot:
    """A Running pod whose only container is waiting."""
    return PodSnapshot(
        name=name,
        namespace=namespace,
        phase="Running",
        container_statuses=[
            ContainerStatus(
                name=container,
                ready=False,
                restart_count=restart_count,
                state=ContainerState.waiting(reason),
            ),
        ],
        containers=[container],
    )


def demo_cluster() -> InMemoryClusterReader:
    """Simulated cluster with a mix of healthy and failing deployments."""
    reader = InMemoryClusterReader()
    owners = {"service_owner": "payments-lead@example.com", "owner_dl": "payments@example.com"}

    reader.add_namespace("kube-system")
    reader.add_workload("kube-system", "coredns")
    reader.add_pod("kube-system", "coredns", running_pod("coredns-5d78c9869d-abcde", "kube-system"))

    reader.add_workload("production", "payment-service", owners)
    reader.add_pod(
        "production", "payment-service",
        running_pod("payment-service-7d9f8b6c5-x2k4m", "production", container="payment-api"),
    )

    reader.add_workload("production", "inventory-api", owners)
    reader.add_pod(
        "production", "inventory-api",
        waiting_pod(
            "inventory-api-5c8d7e6f4-crash", "production",
            container="inventory", restart_count=8,
        ),
    )
    reader.set_logs(
        "production", "inventory-api-5c8d7e6f4-crash", "inventory",
        "Starting inventory service...\n"
        "Connecting to database inventory-db:5432\n"
        "FATAL: password authentication failed for user \"inventory\"\n",
    )

    reader.add_workload("production", "reports", {"service_owner": "reports-lead@example.com"})

    reader.add_workload("staging", "user-service", {
        "service_owner": "users-lead@example.com",
        "owner_dl": "users@example.com",
    })
    reader.add_pod("staging", "user-service", PodSnapshot(
        name="user-service-6e7f8g9h0-oom",
        namespace="staging",
        phase="Running",
        container_statuses=[
            ContainerStatus(
                name="user-api",
                ready=False,
                restart_count=2,
                last_termination=ContainerState.terminated("OOMKilled", 137),
            ),
        ],
        containers=["user-api"],
    ))

    return reader
