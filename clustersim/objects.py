"""Accessors over Kubernetes client node/pod models.

The snapshot treats ``V1Node`` and ``V1Pod`` as opaque values. Everything it needs
to know about them (identity, labels, inter-pod affinity, resource requests) is
read through the helpers in this module.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from kubernetes.client import V1Node, V1Pod
from kubernetes.utils import parse_quantity

DEFAULT_NAMESPACE = "default"

PodKey = Tuple[str, str]


# ----------------------------- resources -----------------------------

@dataclass
class Resource:
    """Scalar resource amounts, in the units the scheduler accounts in."""
    milli_cpu: int = 0
    memory: int = 0              # bytes
    ephemeral_storage: int = 0   # bytes
    allowed_pod_number: int = 0

    @classmethod
    def from_resource_list(cls, resources: Optional[Dict[str, object]]) -> "Resource":
        res = cls()
        for name, quantity in (resources or {}).items():
            if quantity is None:
                continue
            value = parse_quantity(quantity)
            if name == "cpu":
                res.milli_cpu = int(value * 1000)
            elif name == "memory":
                res.memory = int(value)
            elif name == "ephemeral-storage":
                res.ephemeral_storage = int(value)
            elif name == "pods":
                res.allowed_pod_number = int(value)
        return res

    def add(self, other: "Resource") -> None:
        self.milli_cpu += other.milli_cpu
        self.memory += other.memory
        self.ephemeral_storage += other.ephemeral_storage
        self.allowed_pod_number += other.allowed_pod_number

    def sub(self, other: "Resource") -> None:
        self.milli_cpu -= other.milli_cpu
        self.memory -= other.memory
        self.ephemeral_storage -= other.ephemeral_storage
        self.allowed_pod_number -= other.allowed_pod_number

    def set_max(self, other: "Resource") -> None:
        self.milli_cpu = max(self.milli_cpu, other.milli_cpu)
        self.memory = max(self.memory, other.memory)
        self.ephemeral_storage = max(self.ephemeral_storage, other.ephemeral_storage)
        self.allowed_pod_number = max(self.allowed_pod_number, other.allowed_pod_number)

    def copy(self) -> "Resource":
        return Resource(
            milli_cpu=self.milli_cpu,
            memory=self.memory,
            ephemeral_storage=self.ephemeral_storage,
            allowed_pod_number=self.allowed_pod_number,
        )


def _container_requests(containers: Optional[Iterable]) -> Iterable[Resource]:
    for container in containers or []:
        resources = getattr(container, "resources", None)
        yield Resource.from_resource_list(getattr(resources, "requests", None))


# ----------------------------- nodes -----------------------------

def node_name(node: V1Node) -> str:
    if node.metadata is None or not node.metadata.name:
        raise ValueError("node has no metadata.name")
    return node.metadata.name


def node_allocatable(node: V1Node) -> Resource:
    status = node.status
    return Resource.from_resource_list(status.allocatable if status is not None else None)


# ----------------------------- pods -----------------------------

def pod_key(pod: V1Pod) -> PodKey:
    """Return the (namespace, name) identity of a pod."""
    if pod.metadata is None or not pod.metadata.name:
        raise ValueError("pod has no metadata.name")
    return (pod.metadata.namespace or DEFAULT_NAMESPACE, pod.metadata.name)


def pod_labels(pod: V1Pod) -> Dict[str, str]:
    if pod.metadata is None:
        return {}
    return pod.metadata.labels or {}


def pod_node_name(pod: V1Pod) -> Optional[str]:
    return pod.spec.node_name if pod.spec is not None else None


def has_pod_affinity(pod: V1Pod) -> bool:
    """True when the pod declares inter-pod affinity or anti-affinity."""
    affinity = pod.spec.affinity if pod.spec is not None else None
    if affinity is None:
        return False
    return affinity.pod_affinity is not None or affinity.pod_anti_affinity is not None


def pod_requests(pod: V1Pod) -> Resource:
    """Effective requests: sum over containers, at least the largest init container, plus overhead."""
    total = Resource()
    if pod.spec is None:
        return total
    for req in _container_requests(pod.spec.containers):
        total.add(req)
    for req in _container_requests(pod.spec.init_containers):
        total.set_max(req)
    if pod.spec.overhead:
        total.add(Resource.from_resource_list(pod.spec.overhead))
    return total
