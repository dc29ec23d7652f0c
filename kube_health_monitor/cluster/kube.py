"""
Kubernetes Cluster Reader

ClusterReader backed by the official kubernetes Python client.
"""

import logging
from typing import List, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from ..errors import ClusterAPIError, ClusterClientError
from ..models import ContainerState, ContainerStatus, PodSnapshot, Workload
from .reader import ClusterReader

logger = logging.getLogger(__name__)


class KubernetesClusterReader(ClusterReader):
    """Reads namespaces, deployments, pods and logs through the K8s API."""

    def __init__(
        self,
        kubeconfig_path: Optional[str] = None,
        core_v1: Optional[client.CoreV1Api] = None,
        apps_v1: Optional[client.AppsV1Api] = None,
    ):
        """
        Initialize Kubernetes client.

        Args:
            kubeconfig_path: Explicit kubeconfig; otherwise in-cluster config
                is tried first with ~/.kube/config as fallback
            core_v1: Pre-built CoreV1Api (skips config loading)
            apps_v1: Pre-built AppsV1Api (skips config loading)

        Raises:
            ClusterClientError: If no usable configuration is found
        """
        if core_v1 is None or apps_v1 is None:
            _load_kube_config(kubeconfig_path)

        self.core_v1 = core_v1 or client.CoreV1Api()
        self.apps_v1 = apps_v1 or client.AppsV1Api()

    def list_namespaces(self) -> List[str]:
        try:
            namespaces = self.core_v1.list_namespace()
        except ApiException as e:
            raise ClusterAPIError(f"Failed to list namespaces: {e.reason}", status=e.status) from e
        except Exception as e:
            raise ClusterAPIError(f"Failed to list namespaces: {e}") from e

        return [ns.metadata.name for ns in namespaces.items]

    def list_workloads(self, namespace: str) -> List[Workload]:
        try:
            deployments = self.apps_v1.list_namespaced_deployment(namespace=namespace)
        except ApiException as e:
            raise ClusterAPIError(
                f"Failed to list deployments in {namespace}: {e.reason}", status=e.status
            ) from e
        except Exception as e:
            raise ClusterAPIError(f"Failed to list deployments in {namespace}: {e}") from e

        return [
            Workload(
                name=dep.metadata.name,
                annotations=dict(dep.metadata.annotations or {}),
            )
            for dep in deployments.items
        ]

    def list_pods(self, namespace: str, label_selector: str) -> List[PodSnapshot]:
        try:
            pods = self.core_v1.list_namespaced_pod(
                namespace=namespace,
                label_selector=label_selector,
            )
        except ApiException as e:
            raise ClusterAPIError(
                f"Failed to list pods in {namespace} ({label_selector}): {e.reason}",
                status=e.status,
            ) from e
        except Exception as e:
            raise ClusterAPIError(
                f"Failed to list pods in {namespace} ({label_selector}): {e}"
            ) from e

        return [pod_to_snapshot(pod) for pod in pods.items]

    def get_logs(
        self,
        namespace: str,
        pod_name: str,
        container: str,
        tail_lines: int,
    ) -> str:
        try:
            return self.core_v1.read_namespaced_pod_log(
                name=pod_name,
                namespace=namespace,
                container=container,
                tail_lines=tail_lines,
            )
        except ApiException as e:
            raise ClusterAPIError(f"({e.status}) {e.reason}", status=e.status) from e
        except Exception as e:
            raise ClusterAPIError(str(e)) from e


def _load_kube_config(kubeconfig_path: Optional[str]) -> None:
    try:
        if kubeconfig_path:
            config.load_kube_config(config_file=kubeconfig_path)
            return
        # Try in-cluster config first, fall back to kubeconfig
        try:
            config.load_incluster_config()
        except config.ConfigException:
            logger.debug("In-cluster config not available, using kubeconfig")
            config.load_kube_config()
    except Exception as e:
        raise ClusterClientError(f"Failed to load Kubernetes config: {e}") from e


def pod_to_snapshot(pod) -> PodSnapshot:
    """Convert a V1Pod into a PodSnapshot."""
    status = pod.status
    statuses = []
    for cs in (status.container_statuses or []) if status else []:
        last = None
        if cs.last_state is not None and cs.last_state.terminated is not None:
            last = ContainerState.terminated(
                cs.last_state.terminated.reason,
                cs.last_state.terminated.exit_code,
            )
        statuses.append(ContainerStatus(
            name=cs.name,
            ready=bool(cs.ready),
            restart_count=cs.restart_count or 0,
            state=_container_state(cs.state),
            last_termination=last,
        ))

    containers = [c.name for c in (pod.spec.containers or [])] if pod.spec else []

    return PodSnapshot(
        name=pod.metadata.name,
        namespace=pod.metadata.namespace,
        phase=(status.phase if status else None) or "Unknown",
        container_statuses=statuses,
        containers=containers,
    )


def _container_state(state) -> ContainerState:
    """Map V1ContainerState onto the tagged variant."""
    if state is None:
        return ContainerState.unknown()
    if state.waiting is not None:
        return ContainerState.waiting(state.waiting.reason)
    if state.terminated is not None:
        return ContainerState.terminated(state.terminated.reason, state.terminated.exit_code)
    if state.running is not None:
        return ContainerState.running()
    return ContainerState.unknown()
