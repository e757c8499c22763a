"""Errors raised by the cluster snapshot."""

from __future__ import annotations


class SnapshotError(Exception):
    """Base class for every snapshot failure."""


class NodeAlreadyExists(SnapshotError):
    def __init__(self, node_name: str) -> None:
        super().__init__(f"node {node_name} already in snapshot")
        self.node_name = node_name


class NodeNotFound(SnapshotError):
    def __init__(self, node_name: str) -> None:
        super().__init__(f"node {node_name} not in snapshot")
        self.node_name = node_name


class PodNotFound(SnapshotError):
    def __init__(self, namespace: str, pod_name: str) -> None:
        super().__init__(f"pod {namespace}/{pod_name} not in snapshot")
        self.namespace = namespace
        self.pod_name = pod_name


class PodAlreadyExists(SnapshotError):
    """A pod with the same namespace/name is already assigned to a node."""

    def __init__(self, namespace: str, pod_name: str, node_name: str) -> None:
        super().__init__(f"pod {namespace}/{pod_name} already in snapshot on node {node_name}")
        self.namespace = namespace
        self.pod_name = pod_name
        self.node_name = node_name


class AlreadyForked(SnapshotError):
    def __init__(self) -> None:
        super().__init__("snapshot already forked")
