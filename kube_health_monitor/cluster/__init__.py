"""
Cluster Access

Read-only cluster capability consumed by the health sweep.
"""

from .reader import ClusterReader
from .kube import KubernetesClusterReader

__all__ = [
    "ClusterReader",
    "KubernetesClusterReader",
]
