"""Read-only views consumed by the scheduling layer.

Each view holds a callable returning the snapshot's active state, so a view
obtained before ``fork()`` observes the pending copy after it, and the committed
state again after ``revert()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, List, Optional

from kubernetes.client import V1Pod

from .labels import Selector
from .node_info import NodeRecord
from .objects import pod_labels

if TYPE_CHECKING:
	from .state import SnapshotState

StateSource = Callable[[], "SnapshotState"]
PodPredicate = Callable[[V1Pod], bool]


def _always(pod: V1Pod) -> bool:
	return True


class NodeView:
	def __init__(self, source: StateSource) -> None:
		self._source = source

	def list(self) -> List[NodeRecord]:
		return self._source().node_records()

	def list_with_affinity_pods(self) -> List[NodeRecord]:
		"""Nodes hosting at least one pod with inter-pod affinity or anti-affinity."""
		return [r for r in self._source().node_records() if r.has_pods_with_affinity]

	def get(self, node_name: str) -> NodeRecord:
		"""Raises NodeNotFound for an unknown name."""
		return self._source().get(node_name)


class PodView:
	def __init__(self, source: StateSource) -> None:
		self._source = source

	def list(self, selector: Optional[Selector] = None) -> List[V1Pod]:
		return self.filtered_list(_always, selector)

	def filtered_list(self, predicate: PodPredicate, selector: Optional[Selector] = None) -> List[V1Pod]:
		selector = selector if selector is not None else Selector.everything()
		pods: List[V1Pod] = []
		for record in self._source().node_records():
			for pod in record.pods:
				if predicate(pod) and selector.matches(pod_labels(pod)):
					pods.append(pod)
		return pods


class SchedulerLister:
	"""Single handle bundling the node and pod views."""

	def __init__(self, source: StateSource) -> None:
		self._nodes = NodeView(source)
		self._pods = PodView(source)

	def node_infos(self) -> NodeView:
		return self._nodes

	def pods(self) -> PodView:
		return self._pods
