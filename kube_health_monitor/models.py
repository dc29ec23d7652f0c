"""
Health Sweep Data Models

Defines the workload, pod and verdict structures that flow through
discovery, evaluation and notification.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Dict, Optional, Any

from .utils.time import utc_now


class StateKind(Enum):
    """Container runtime state variants."""
    RUNNING = "running"
    WAITING = "waiting"
    TERMINATED = "terminated"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ContainerState:
    """
    Tagged container state.

    Only the fields relevant to ``kind`` are meaningful: ``reason`` for
    WAITING and TERMINATED, ``exit_code`` for TERMINATED.
    """
    kind: StateKind
    reason: str = ""
    exit_code: Optional[int] = None

    @classmethod
    def running(cls) -> "ContainerState":
        return cls(StateKind.RUNNING)

    @classmethod
    def waiting(cls, reason: str) -> "ContainerState":
        return cls(StateKind.WAITING, reason=reason or "")

    @classmethod
    def terminated(cls, reason: str, exit_code: int) -> "ContainerState":
        return cls(StateKind.TERMINATED, reason=reason or "", exit_code=exit_code)

    @classmethod
    def unknown(cls) -> "ContainerState":
        return cls(StateKind.UNKNOWN)


@dataclass(frozen=True)
class ContainerStatus:
    """
    Status of one container inside a pod.

    Attributes:
        name: Container name
        ready: Readiness flag reported by the kubelet
        restart_count: Number of restarts
        state: Current runtime state
        last_termination: Previous terminated state, if known
    """
    name: str
    ready: bool
    restart_count: int = 0
    state: ContainerState = field(default_factory=ContainerState.running)
    last_termination: Optional[ContainerState] = None


@dataclass(frozen=True)
class PodSnapshot:
    """
    Read-only view of a pod at evaluation time.

    Attributes:
        name: Pod name
        namespace: K8s namespace
        phase: Pod phase (Running, Pending, Failed, ...)
        container_statuses: Ordered container statuses
        containers: Declared container names; the first is the primary one
    """
    name: str
    namespace: str
    phase: str
    container_statuses: List[ContainerStatus] = field(default_factory=list)
    containers: List[str] = field(default_factory=list)

    @property
    def primary_container(self) -> Optional[str]:
        return self.containers[0] if self.containers else None


@dataclass(frozen=True)
class Workload:
    """Raw workload listing entry as returned by a cluster reader."""
    name: str
    annotations: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkloadRef:
    """
    A workload selected for scanning.

    Attributes:
        name: Deployment name
        namespace: K8s namespace
        owner_email: Individual service owner
        owner_dl_email: Team distribution list
        annotations: All annotations found on the workload
    """
    name: str
    namespace: str
    owner_email: str
    owner_dl_email: str
    annotations: Dict[str, str] = field(default_factory=dict, hash=False)

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class HealthVerdict:
    """Outcome of evaluating one workload."""
    healthy: bool
    reason: str = ""
    excerpt: str = ""

    @classmethod
    def ok(cls) -> "HealthVerdict":
        return cls(healthy=True)

    @classmethod
    def failed(cls, reason: str, excerpt: str = "") -> "HealthVerdict":
        return cls(healthy=False, reason=reason, excerpt=excerpt)


@dataclass(frozen=True)
class EvaluationResult:
    """Value-or-error pair returned by the health checker."""
    verdict: HealthVerdict
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class FailedServiceRecord:
    """
    An unhealthy workload captured during a sweep.

    Attributes:
        workload: The workload that failed
        verdict: Its unhealthy verdict
        check_time: Detection timestamp (UTC)
    """
    workload: WorkloadRef
    verdict: HealthVerdict
    check_time: datetime = field(default_factory=utc_now)

    @property
    def failure_reason(self) -> str:
        return self.verdict.reason

    @property
    def pod_logs(self) -> str:
        return self.verdict.excerpt

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.workload.name,
            "namespace": self.workload.namespace,
            "owner_email": self.workload.owner_email,
            "owner_dl_email": self.workload.owner_dl_email,
            "failure_reason": self.verdict.reason,
            "has_logs": bool(self.verdict.excerpt),
            "check_time": self.check_time.isoformat(),
        }


@dataclass
class SweepResult:
    """
    Aggregated result of a single sweep.

    Attributes:
        failed: Unhealthy workloads, in discovery order
        discovered: Workloads that passed annotation filtering
        evaluated: Workloads evaluated without error
        errors: Workloads skipped because evaluation failed
        dry_run: Whether notifications are suppressed for this run
        duration_ms: Sweep duration in milliseconds
    """
    failed: List[FailedServiceRecord] = field(default_factory=list)
    discovered: int = 0
    evaluated: int = 0
    errors: int = 0
    dry_run: bool = False
    duration_ms: float = 0.0

    @property
    def healthy_count(self) -> int:
        return self.evaluated - len(self.failed)

    @property
    def all_healthy(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        """One-line end-of-sweep outcome."""
        if self.dry_run:
            return f"Dry run: Found {len(self.failed)} unhealthy services (no emails sent)"
        if self.failed:
            return f"Found {len(self.failed)} unhealthy services"
        return "All services are healthy!"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": {
                "discovered": self.discovered,
                "evaluated": self.evaluated,
                "healthy": self.healthy_count,
                "unhealthy": len(self.failed),
                "errors": self.errors,
            },
            "dry_run": self.dry_run,
            "duration_ms": self.duration_ms,
            "failed": [r.to_dict() for r in self.failed],
        }


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of sending one alert."""
    workload: WorkloadRef
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.error is None
