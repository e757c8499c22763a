"""
Transactional in-memory cluster snapshot for scheduling simulation.

Modules:
- objects: identity, labels, affinity and resource requests of V1Node / V1Pod
- labels: Kubernetes label selectors
- node_info: NodeRecord, a node plus the pods assigned to it
- state: SnapshotState, node name -> NodeRecord with mutations and clone
- snapshot: ClusterSnapshot, fork / commit / revert over a SnapshotState
- listers: read-only node and pod views for the scheduling layer
- config: SnapshotConfig from YAML and environment
- loader: seed a snapshot from YAML manifests
"""

from .errors import (
    AlreadyForked,
    NodeAlreadyExists,
    NodeNotFound,
    PodAlreadyExists,
    PodNotFound,
    SnapshotError,
)
from .config import SnapshotConfig, load_config
from .labels import Selector
from .listers import NodeView, PodView, SchedulerLister
from .node_info import NodeRecord
from .snapshot import ClusterSnapshot
from .state import SnapshotState

__all__ = [
    "AlreadyForked",
    "ClusterSnapshot",
    "NodeAlreadyExists",
    "NodeNotFound",
    "NodeRecord",
    "NodeView",
    "PodAlreadyExists",
    "PodNotFound",
    "PodView",
    "SchedulerLister",
    "Selector",
    "SnapshotConfig",
    "SnapshotError",
    "SnapshotState",
    "load_config",
]
