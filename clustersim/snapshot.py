"""
ClusterSnapshot: single-level fork / commit / revert over a SnapshotState.

Typical simulation step::

    snapshot.fork()
    try:
        snapshot.add_pod(pod, "node-a")
        feasible = run_predicates(snapshot.scheduler_lister())
        if feasible:
            snapshot.commit()
    finally:
        snapshot.revert()

``revert()`` and ``commit()`` are no-ops when nothing is forked, so the ``finally``
above is always safe. ``trial()`` wraps the same pattern in a context manager.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional, Union

from kubernetes.client import V1Node, V1Pod

from .config import SnapshotConfig
from .errors import AlreadyForked
from .listers import NodeView, PodView, SchedulerLister
from .state import SnapshotState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Base:
    """No trial in progress; reads and writes go to committed."""
    committed: SnapshotState


@dataclass(frozen=True)
class Forked:
    """Trial in progress; reads and writes go to pending, committed is untouched."""
    committed: SnapshotState
    pending: SnapshotState


Mode = Union[Base, Forked]


class ClusterSnapshot:
    def __init__(self, config: Optional[SnapshotConfig] = None) -> None:
        self.config = config or SnapshotConfig()
        self._mode: Mode = Base(self._new_state())

    def _new_state(self) -> SnapshotState:
        return SnapshotState(enforce_unique_pods=self.config.enforce_unique_pods)

    # -------- active state --------

    @property
    def is_forked(self) -> bool:
        return isinstance(self._mode, Forked)

    def active_state(self) -> SnapshotState:
        if isinstance(self._mode, Forked):
            return self._mode.pending
        return self._mode.committed

    # -------- mutations --------

    def add_node(self, node: V1Node) -> None:
        self.active_state().add_node(node)

    def remove_node(self, node_name: str) -> None:
        """Remove a node and every pod scheduled on it."""
        self.active_state().remove_node(node_name)

    def add_pod(self, pod: V1Pod, node_name: str) -> None:
        self.active_state().add_pod(pod, node_name)

    def remove_pod(self, namespace: str, pod_name: str) -> None:
        self.active_state().remove_pod(namespace, pod_name)

    # -------- reads --------

    def get_all_pods(self) -> List[V1Pod]:
        return self.active_state().list_all_pods()

    def get_all_nodes(self) -> List[V1Node]:
        return self.active_state().list_all_nodes()

    def node_view(self) -> NodeView:
        return NodeView(self.active_state)

    def pod_view(self) -> PodView:
        return PodView(self.active_state)

    def scheduler_lister(self) -> SchedulerLister:
        return SchedulerLister(self.active_state)

    # -------- transactions --------

    def fork(self) -> None:
        """Start a trial. All changes until commit()/revert() go to a private copy."""
        if isinstance(self._mode, Forked):
            raise AlreadyForked()
        committed = self._mode.committed
        self._mode = Forked(committed=committed, pending=committed.clone())
        logger.debug(f"Forked snapshot: {len(committed)} nodes, {committed.pod_count()} pods")

    def revert(self) -> None:
        """Drop changes made since fork(). No-op when not forked."""
        if isinstance(self._mode, Forked):
            self._mode = Base(self._mode.committed)
            logger.debug("Reverted snapshot to committed state")

    def commit(self) -> None:
        """Keep changes made since fork(). No-op when not forked."""
        if isinstance(self._mode, Forked):
            pending = self._mode.pending
            self._mode = Base(pending)
            logger.debug(f"Committed snapshot: {len(pending)} nodes, {pending.pod_count()} pods")

    def clear(self) -> None:
        """Reset to an empty, unforked snapshot."""
        self._mode = Base(self._new_state())
        logger.debug("Cleared snapshot")

    @contextmanager
    def trial(self) -> Iterator["ClusterSnapshot"]:
        """Fork for the duration of a block.

        The block keeps its changes by calling ``commit()``; anything left
        uncommitted on exit, including on an exception, is reverted.
        """
        self.fork()
        try:
            yield self
        finally:
            self.revert()
