"""
In-memory cluster state: node name -> NodeRecord.

Invariants held by every SnapshotState:
- node names are unique
- every pod is reachable from exactly one NodeRecord
- removing a node removes the pods assigned to it
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from kubernetes.client import V1Node, V1Pod

from .errors import NodeAlreadyExists, NodeNotFound, PodAlreadyExists, PodNotFound
from .node_info import NodeRecord
from . import objects

logger = logging.getLogger(__name__)


class SnapshotState:
    def __init__(self, enforce_unique_pods: bool = True) -> None:
        self.enforce_unique_pods = enforce_unique_pods
        self._records: Dict[str, NodeRecord] = {}

    # -------- nodes --------

    def add_node(self, node: V1Node) -> None:
        name = objects.node_name(node)
        if name in self._records:
            raise NodeAlreadyExists(name)
        self._records[name] = NodeRecord(node)

    def remove_node(self, name: str) -> None:
        record = self._records.pop(name, None)
        if record is None:
            raise NodeNotFound(name)
        if record.pod_count:
            logger.debug(f"Removed node {name} together with {record.pod_count} pods")

    def get(self, name: str) -> NodeRecord:
        record = self._records.get(name)
        if record is None:
            raise NodeNotFound(name)
        return record

    # -------- pods --------

    def add_pod(self, pod: V1Pod, node_name: str) -> None:
        record = self._records.get(node_name)
        if record is None:
            raise NodeNotFound(node_name)
        if self.enforce_unique_pods:
            key = objects.pod_key(pod)
            holder = self._find_pod_holder(key)
            if holder is not None:
                raise PodAlreadyExists(key[0], key[1], holder.name)
        record.add_pod(pod)

    def remove_pod(self, namespace: str, name: str) -> None:
        """An empty namespace means "default", as it does for stored pods."""
        key = (namespace or objects.DEFAULT_NAMESPACE, name)
        holder = self._find_pod_holder(key)
        if holder is None:
            raise PodNotFound(namespace, name)
        holder.remove_pod(key)

    def _find_pod_holder(self, key) -> Optional[NodeRecord]:
        for record in self._records.values():
            if record.has_pod(key):
                return record
        return None

    # -------- listing --------

    def node_records(self) -> List[NodeRecord]:
        return list(self._records.values())

    def list_all_nodes(self) -> List[V1Node]:
        return [record.node for record in self._records.values()]

    def list_all_pods(self) -> List[V1Pod]:
        pods: List[V1Pod] = []
        for record in self._records.values():
            pods.extend(record.pods)
        return pods

    def pod_count(self) -> int:
        return sum(record.pod_count for record in self._records.values())

    # -------- copy --------

    def clone(self) -> "SnapshotState":
        dup = SnapshotState(enforce_unique_pods=self.enforce_unique_pods)
        dup._records = {name: record.clone() for name, record in self._records.items()}
        return dup

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, name: object) -> bool:
        return name in self._records
