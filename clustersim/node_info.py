"""Per-node aggregate: a node plus the pods currently assigned to it."""

from __future__ import annotations

from typing import Dict, List, Optional

from kubernetes.client import V1Node, V1Pod

from .objects import PodKey, Resource, has_pod_affinity, node_allocatable, node_name, pod_key, pod_requests


class NodeRecord:
    """A node and its pods, with totals derived from those pods.

    Pod objects are shared by reference between clones; the containers holding
    them are not.
    """

    def __init__(self, node: V1Node) -> None:
        self._node = node
        self._name = node_name(node)
        self._allocatable = node_allocatable(node)
        self._pods: Dict[PodKey, V1Pod] = {}
        self._affinity_keys: set = set()
        self._requested = Resource()

    # -------- identity --------

    @property
    def node(self) -> V1Node:
        return self._node

    @property
    def name(self) -> str:
        return self._name

    # -------- pods --------

    @property
    def pods(self) -> List[V1Pod]:
        return list(self._pods.values())

    @property
    def pod_count(self) -> int:
        return len(self._pods)

    @property
    def pods_with_affinity(self) -> List[V1Pod]:
        return [self._pods[k] for k in self._affinity_keys]

    @property
    def has_pods_with_affinity(self) -> bool:
        return bool(self._affinity_keys)

    def has_pod(self, key: PodKey) -> bool:
        return key in self._pods

    def get_pod(self, key: PodKey) -> Optional[V1Pod]:
        return self._pods.get(key)

    def add_pod(self, pod: V1Pod) -> None:
        # read everything that can raise before touching the record
        key = pod_key(pod)
        requests = pod_requests(pod)
        affinity = has_pod_affinity(pod)
        if key in self._pods:
            self._forget(key)
        self._pods[key] = pod
        self._requested.add(requests)
        if affinity:
            self._affinity_keys.add(key)

    def remove_pod(self, key: PodKey) -> Optional[V1Pod]:
        if key not in self._pods:
            return None
        return self._forget(key)

    def _forget(self, key: PodKey) -> V1Pod:
        pod = self._pods.pop(key)
        self._requested.sub(pod_requests(pod))
        self._affinity_keys.discard(key)
        return pod

    # -------- resources --------

    @property
    def requested(self) -> Resource:
        return self._requested.copy()

    @property
    def allocatable(self) -> Resource:
        return self._allocatable.copy()

    def free(self) -> Resource:
        """Allocatable minus requested; may go negative on overcommitted nodes."""
        headroom = self._allocatable.copy()
        headroom.sub(self._requested)
        headroom.allowed_pod_number = self._allocatable.allowed_pod_number - len(self._pods)
        return headroom

    # -------- copy --------

    def clone(self) -> "NodeRecord":
        dup = NodeRecord.__new__(NodeRecord)
        dup._node = self._node
        dup._name = self._name
        dup._allocatable = self._allocatable.copy()
        dup._pods = dict(self._pods)
        dup._affinity_keys = set(self._affinity_keys)
        dup._requested = self._requested.copy()
        return dup

    def __repr__(self) -> str:
        return (
            f"NodeRecord({self._name}, pods={len(self._pods)}, "
            f"affinity_pods={len(self._affinity_keys)}, "
            f"cpu={self._requested.milli_cpu}m/{self._allocatable.milli_cpu}m)"
        )
