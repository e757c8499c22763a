import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

import pytest
from kubernetes.client import (
    V1Affinity,
    V1Container,
    V1LabelSelector,
    V1Node,
    V1NodeStatus,
    V1ObjectMeta,
    V1Pod,
    V1PodAffinity,
    V1PodAffinityTerm,
    V1PodAntiAffinity,
    V1PodSpec,
    V1ResourceRequirements,
)

from clustersim.snapshot import ClusterSnapshot


def build_node(name, cpu="4", memory="8Gi", pods="110", labels=None):
    return V1Node(
        metadata=V1ObjectMeta(name=name, labels=labels or {}),
        status=V1NodeStatus(allocatable={"cpu": cpu, "memory": memory, "pods": pods}),
    )


def build_pod(name, namespace="default", labels=None, cpu=None, memory=None, affinity=None, node_name=None):
    requests = {}
    if cpu is not None:
        requests["cpu"] = cpu
    if memory is not None:
        requests["memory"] = memory
    pod_affinity = None
    if affinity == "affinity":
        pod_affinity = V1Affinity(pod_affinity=V1PodAffinity(
            required_during_scheduling_ignored_during_execution=[_term()]))
    elif affinity == "anti-affinity":
        pod_affinity = V1Affinity(pod_anti_affinity=V1PodAntiAffinity(
            required_during_scheduling_ignored_during_execution=[_term()]))
    return V1Pod(
        metadata=V1ObjectMeta(name=name, namespace=namespace, labels=labels or {}),
        spec=V1PodSpec(
            node_name=node_name,
            affinity=pod_affinity,
            containers=[V1Container(name="main", resources=V1ResourceRequirements(requests=requests))],
        ),
    )


def _term():
    return V1PodAffinityTerm(
        label_selector=V1LabelSelector(match_labels={"app": "db"}),
        topology_key="kubernetes.io/hostname",
    )


@pytest.fixture
def make_node():
    return build_node


@pytest.fixture
def make_pod():
    return build_pod


@pytest.fixture
def snapshot():
    return ClusterSnapshot()


def names(objs):
    return {o.metadata.name for o in objs}


@pytest.fixture
def names_of():
    return names
