"""Load Node/Pod manifests from YAML and seed a ClusterSnapshot.

Accepts single files or directories of ``*.yaml`` / ``*.yml``; each file may hold
several documents, and ``kind: List`` documents are unwrapped.
"""

from __future__ import annotations

import inspect
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Tuple, Union

import yaml
from kubernetes.client import ApiClient, V1Node, V1Pod

from .errors import SnapshotError
from .objects import pod_key, pod_node_name
from .snapshot import ClusterSnapshot

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ManifestError(ValueError):
	pass


@dataclass
class SeedResult:
	nodes: int = 0
	pods: int = 0
	skipped_pods: int = 0


class _Payload:
	"""Response stand-in for the older ApiClient.deserialize, which reads ``.data``."""

	def __init__(self, text: str) -> None:
		self.data = text


def _manifest_files(path: Path) -> List[Path]:
	if path.is_dir():
		return sorted(list(path.glob("*.yaml")) + list(path.glob("*.yml")))
	if path.exists():
		return [path]
	raise ManifestError(f"manifest path {path} does not exist")


def _documents(path: Path) -> Iterator[Dict[str, Any]]:
	try:
		with open(path, "r") as f:
			docs = list(yaml.safe_load_all(f))
	except yaml.YAMLError as e:
		raise ManifestError(f"{path}: invalid YAML: {e}") from e

	for doc in docs:
		if doc is None:
			continue
		if not isinstance(doc, dict):
			raise ManifestError(f"{path}: every document must be a mapping")
		if str(doc.get("kind") or "").endswith("List"):
			for item in doc.get("items") or []:
				yield item
		else:
			yield doc


def _to_model(api: ApiClient, doc: Dict[str, Any], klass: str, path: Path) -> Any:
	"""Build a client model from a manifest mapping.

	Older client releases take a response object exposing ``.data``; current
	ones take the JSON text and a content type.
	"""
	text = json.dumps(doc, default=str)
	try:
		if "response_text" in inspect.signature(api.deserialize).parameters:
			obj = api.deserialize(text, klass, "application/json")
		else:
			obj = api.deserialize(_Payload(text), klass)
	except (TypeError, ValueError) as e:
		raise ManifestError(f"{path}: invalid {doc.get('kind')} manifest: {e}") from e
	if obj.metadata is None or not obj.metadata.name:
		raise ManifestError(f"{path}: {doc.get('kind')} manifest has no metadata.name")
	return obj


def load_manifests(paths: Union[PathLike, Iterable[PathLike]]) -> Tuple[List[V1Node], List[V1Pod]]:
	"""Read manifests and return (nodes, pods) as Kubernetes client models.

	Raises ManifestError for unreadable files and for Node/Pod documents the
	client models reject or that carry no name.
	"""
	if isinstance(paths, (str, Path)):
		paths = [paths]

	nodes: List[V1Node] = []
	pods: List[V1Pod] = []
	with ApiClient() as api:
		for raw in paths:
			for path in _manifest_files(Path(raw)):
				for doc in _documents(path):
					kind = doc.get("kind")
					if kind == "Node":
						nodes.append(_to_model(api, doc, "V1Node", path))
					elif kind == "Pod":
						pods.append(_to_model(api, doc, "V1Pod", path))
					else:
						logger.debug(f"Skipping {kind} document in {path}")
	return nodes, pods


def seed_snapshot(snapshot: ClusterSnapshot, paths: Union[PathLike, Iterable[PathLike]]) -> SeedResult:
	"""Add every manifest node, then every pod bound to one of them.

	Pods with no ``spec.nodeName``, bound to an unknown node, or rejected by the
	snapshot are skipped with a warning. A node name repeated across manifests
	raises NodeAlreadyExists.
	"""
	nodes, pods = load_manifests(paths)
	result = SeedResult()

	for node in nodes:
		snapshot.add_node(node)
		result.nodes += 1

	for pod in pods:
		namespace, name = pod_key(pod)
		target = pod_node_name(pod)
		if not target:
			logger.warning(f"Pod {namespace}/{name} is not bound to a node, skipping")
			result.skipped_pods += 1
			continue
		try:
			snapshot.add_pod(pod, target)
		except SnapshotError as e:
			logger.warning(f"Skipping pod {namespace}/{name}: {e}")
			result.skipped_pods += 1
			continue
		result.pods += 1

	logger.info(
		f"Seeded snapshot: {result.nodes} nodes, {result.pods} pods, "
		f"{result.skipped_pods} pods skipped"
	)
	return result
