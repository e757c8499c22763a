import pytest

from clustersim.config import SnapshotConfig
from clustersim.errors import AlreadyForked, NodeNotFound, PodNotFound, SnapshotError
from clustersim.snapshot import Base, ClusterSnapshot, Forked


@pytest.fixture
def seeded(snapshot, make_node, make_pod):
    snapshot.add_node(make_node("n1"))
    snapshot.add_node(make_node("n2"))
    snapshot.add_pod(make_pod("a"), "n1")
    snapshot.add_pod(make_pod("b"), "n2")
    return snapshot


def test_new_snapshot_is_empty_and_unforked(snapshot):
    assert snapshot.get_all_nodes() == []
    assert snapshot.get_all_pods() == []
    assert not snapshot.is_forked
    assert isinstance(snapshot._mode, Base)


def test_revert_restores_state_before_fork(seeded, make_node, make_pod, names_of):
    nodes_before = names_of(seeded.get_all_nodes())
    pods_before = names_of(seeded.get_all_pods())

    seeded.fork()
    assert isinstance(seeded._mode, Forked)
    seeded.add_node(make_node("n3"))
    seeded.add_pod(make_pod("c"), "n3")
    seeded.remove_pod("default", "a")
    seeded.remove_node("n2")
    assert names_of(seeded.get_all_nodes()) == {"n1", "n3"}
    assert names_of(seeded.get_all_pods()) == {"c"}

    seeded.revert()
    assert not seeded.is_forked
    assert names_of(seeded.get_all_nodes()) == nodes_before
    assert names_of(seeded.get_all_pods()) == pods_before


def test_commit_keeps_forked_changes(seeded, make_node, make_pod, names_of):
    seeded.fork()
    seeded.add_node(make_node("n3"))
    seeded.add_pod(make_pod("c"), "n3")
    seeded.remove_node("n1")
    seeded.commit()

    assert not seeded.is_forked
    assert names_of(seeded.get_all_nodes()) == {"n2", "n3"}
    assert names_of(seeded.get_all_pods()) == {"b", "c"}

    # a later fork/revert cycle leaves the new baseline alone
    seeded.fork()
    seeded.remove_node("n2")
    seeded.add_pod(make_pod("d"), "n3")
    seeded.revert()
    assert names_of(seeded.get_all_nodes()) == {"n2", "n3"}
    assert names_of(seeded.get_all_pods()) == {"b", "c"}


def test_double_fork_fails_and_leaves_pending_intact(seeded, make_pod, names_of):
    seeded.fork()
    seeded.add_pod(make_pod("c"), "n1")
    with pytest.raises(AlreadyForked):
        seeded.fork()
    assert seeded.is_forked
    assert names_of(seeded.get_all_pods()) == {"a", "b", "c"}

    seeded.revert()
    assert names_of(seeded.get_all_pods()) == {"a", "b"}


def test_revert_and_commit_without_fork_are_noops(seeded, names_of):
    seeded.revert()
    assert names_of(seeded.get_all_nodes()) == {"n1", "n2"}
    seeded.commit()
    assert names_of(seeded.get_all_nodes()) == {"n1", "n2"}
    assert names_of(seeded.get_all_pods()) == {"a", "b"}
    assert not seeded.is_forked


def test_remove_node_drops_its_pods(seeded, make_pod, names_of):
    seeded.add_pod(make_pod("a2"), "n1")
    seeded.remove_node("n1")
    assert names_of(seeded.get_all_nodes()) == {"n2"}
    assert names_of(seeded.get_all_pods()) == {"b"}
    with pytest.raises(PodNotFound):
        seeded.remove_pod("default", "a2")


def test_add_pod_to_missing_node_changes_nothing(seeded, make_pod, names_of):
    with pytest.raises(NodeNotFound) as excinfo:
        seeded.add_pod(make_pod("x"), "missing")
    assert excinfo.value.node_name == "missing"
    assert names_of(seeded.get_all_pods()) == {"a", "b"}


def test_errors_share_a_base_class(snapshot):
    with pytest.raises(SnapshotError):
        snapshot.remove_node("ghost")
    with pytest.raises(SnapshotError):
        snapshot.remove_pod("default", "ghost")


def test_scenario_fork_then_revert(snapshot, make_node, make_pod, names_of):
    pod_a = make_pod("podA")
    snapshot.add_node(make_node("n1"))
    snapshot.add_pod(pod_a, "n1")
    snapshot.fork()
    snapshot.add_pod(make_pod("podB"), "n1")
    snapshot.remove_node("n1")
    snapshot.revert()

    assert names_of(snapshot.get_all_nodes()) == {"n1"}
    assert snapshot.get_all_pods() == [pod_a]


def test_scenario_fork_then_commit(snapshot, make_node, make_pod):
    snapshot.add_node(make_node("n1"))
    snapshot.add_pod(make_pod("podA"), "n1")
    snapshot.fork()
    snapshot.add_pod(make_pod("podB"), "n1")
    snapshot.remove_node("n1")
    snapshot.commit()

    assert snapshot.get_all_nodes() == []
    assert snapshot.get_all_pods() == []

    snapshot.fork()
    snapshot.revert()
    assert snapshot.get_all_nodes() == []


def test_clear_discards_committed_and_pending(seeded, make_node):
    seeded.fork()
    seeded.add_node(make_node("n3"))
    seeded.clear()
    assert not seeded.is_forked
    assert seeded.get_all_nodes() == []
    assert seeded.get_all_pods() == []
    seeded.fork()
    seeded.revert()


def test_views_follow_the_active_state(seeded, make_pod, names_of):
    pods = seeded.pod_view()
    nodes = seeded.node_view()

    seeded.fork()
    seeded.add_pod(make_pod("c"), "n1")
    assert names_of(pods.list()) == {"a", "b", "c"}
    assert nodes.get("n1").pod_count == 2

    seeded.revert()
    assert names_of(pods.list()) == {"a", "b"}
    assert nodes.get("n1").pod_count == 1


def test_trial_reverts_unless_committed(seeded, make_pod, names_of):
    with seeded.trial():
        seeded.add_pod(make_pod("c"), "n1")
        assert seeded.is_forked
    assert names_of(seeded.get_all_pods()) == {"a", "b"}

    with seeded.trial():
        seeded.add_pod(make_pod("c"), "n1")
        seeded.commit()
    assert names_of(seeded.get_all_pods()) == {"a", "b", "c"}


def test_trial_reverts_on_exception(seeded, make_pod, names_of):
    with pytest.raises(NodeNotFound):
        with seeded.trial():
            seeded.add_pod(make_pod("c"), "n1")
            seeded.remove_node("missing")
    assert not seeded.is_forked
    assert names_of(seeded.get_all_pods()) == {"a", "b"}


def test_instances_are_independent(make_node):
    first = ClusterSnapshot()
    second = ClusterSnapshot()
    first.add_node(make_node("n1"))
    first.fork()
    assert second.get_all_nodes() == []
    assert not second.is_forked
    second.fork()
    first.revert()
    assert second.is_forked


def test_config_controls_duplicate_pod_policy(make_node, make_pod, names_of):
    permissive = ClusterSnapshot(SnapshotConfig(enforce_unique_pods=False))
    permissive.add_node(make_node("n1"))
    permissive.add_node(make_node("n2"))
    permissive.add_pod(make_pod("dup"), "n1")
    permissive.add_pod(make_pod("dup"), "n2")
    assert len(permissive.get_all_pods()) == 2

    permissive.fork()
    assert len(permissive.get_all_pods()) == 2
    permissive.clear()
    assert permissive.active_state().enforce_unique_pods is False
