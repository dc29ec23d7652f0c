"""
Cluster Reader Interface

Read-only capability the sweep uses to talk to a cluster.
"""

from abc import ABC, abstractmethod
from typing import List

from ..models import PodSnapshot, Workload


class ClusterReader(ABC):
    """
    Base class for cluster readers.

    Every method performs a single attempt. Failures are raised as
    ClusterAPIError; callers decide whether they are fatal.
    """

    @abstractmethod
    def list_namespaces(self) -> List[str]:
        """Return namespace names in listing order."""
        pass

    @abstractmethod
    def list_workloads(self, namespace: str) -> List[Workload]:
        """Return the deployments of a namespace in source order."""
        pass

    @abstractmethod
    def list_pods(self, namespace: str, label_selector: str) -> List[PodSnapshot]:
        """Return pods matching a label selector such as ``app=billing``."""
        pass

    @abstractmethod
    def get_logs(
        self,
        namespace: str,
        pod_name: str,
        container: str,
        tail_lines: int,
    ) -> str:
        """Return the last ``tail_lines`` log lines of a container."""
        pass
