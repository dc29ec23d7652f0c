"""
Workload Discovery

Enumerates deployments across namespaces and keeps those that carry both
ownership annotations.
"""

import logging
from typing import Iterable, List, Optional

from ..cluster.reader import ClusterReader
from ..config import OWNER_ANNOTATION, OWNER_DL_ANNOTATION
from ..errors import ClusterAPIError, DiscoveryError
from ..models import Workload, WorkloadRef

logger = logging.getLogger(__name__)


class WorkloadDiscovery:
    """
    Finds the workloads a sweep should evaluate.

    A failure to list namespaces is fatal. A failure to list deployments in
    one namespace only skips that namespace.

    Example:
        discovery = WorkloadDiscovery(reader, excluded_namespaces={"kube-system"})
        for ref in discovery.discover():
            print(ref.key, ref.owner_email)
    """

    def __init__(
        self,
        reader: ClusterReader,
        excluded_namespaces: Optional[Iterable[str]] = None,
    ):
        self.reader = reader
        self.excluded_namespaces = frozenset(excluded_namespaces or ())

    def discover(self, excluded_namespaces: Optional[Iterable[str]] = None) -> List[WorkloadRef]:
        """
        List scannable workloads.

        Args:
            excluded_namespaces: Overrides the configured exclusion set

        Returns:
            WorkloadRefs in namespace order, then source order

        Raises:
            DiscoveryError: If namespaces cannot be listed
        """
        excluded = (
            frozenset(excluded_namespaces)
            if excluded_namespaces is not None
            else self.excluded_namespaces
        )

        try:
            namespaces = self.reader.list_namespaces()
        except ClusterAPIError as e:
            raise DiscoveryError(f"Failed to list namespaces: {e}") from e

        refs: List[WorkloadRef] = []
        for namespace in namespaces:
            if namespace in excluded:
                logger.debug(f"Skipping excluded namespace {namespace}")
                continue

            try:
                workloads = self.reader.list_workloads(namespace)
            except ClusterAPIError as e:
                logger.error(f"Failed to list deployments in namespace {namespace}: {e}")
                continue

            for workload in workloads:
                ref = to_workload_ref(namespace, workload)
                if ref is None:
                    logger.warning(
                        f"Deployment {namespace}/{workload.name} missing owner annotations "
                        f"({OWNER_ANNOTATION}, {OWNER_DL_ANNOTATION}), skipping"
                    )
                    continue
                refs.append(ref)

        logger.info(f"Discovered {len(refs)} deployments with owner annotations")
        return refs


def to_workload_ref(namespace: str, workload: Workload) -> Optional[WorkloadRef]:
    """Build a WorkloadRef, or None if either owner annotation is empty."""
    annotations = workload.annotations or {}
    owner = (annotations.get(OWNER_ANNOTATION) or "").strip()
    owner_dl = (annotations.get(OWNER_DL_ANNOTATION) or "").strip()

    if not owner or not owner_dl:
        return None

    return WorkloadRef(
        name=workload.name,
        namespace=namespace,
        owner_email=owner,
        owner_dl_email=owner_dl,
        annotations=dict(annotations),
    )
