from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from clustersim.config import SnapshotConfig, load_config
from clustersim.errors import SnapshotError
from clustersim.loader import ManifestError, seed_snapshot
from clustersim.objects import pod_key
from clustersim.snapshot import ClusterSnapshot

logger = logging.getLogger(__name__)


def build_snapshot(cfg: SnapshotConfig, paths: List[str]) -> ClusterSnapshot:
    """Create a snapshot and seed it from manifests (CLI paths, else config paths)."""
    snapshot = ClusterSnapshot(cfg)
    sources = paths or cfg.manifest_paths
    if not sources:
        logger.warning("No manifests given, snapshot is empty")
        return snapshot
    seed_snapshot(snapshot, sources)
    return snapshot


def print_summary(snapshot: ClusterSnapshot, out=sys.stdout) -> None:
    records = sorted(snapshot.node_view().list(), key=lambda r: r.name)
    total_pods = sum(r.pod_count for r in records)
    print(f"nodes={len(records)} pods={total_pods}", file=out)
    for r in records:
        req = r.requested
        alloc = r.allocatable
        print(
            f"  {r.name}: pods={r.pod_count} affinity_pods={len(r.pods_with_affinity)} "
            f"cpu={req.milli_cpu}m/{alloc.milli_cpu}m mem={req.memory}/{alloc.memory}",
            file=out,
        )


def what_if_remove(snapshot: ClusterSnapshot, node_name: str, out=sys.stdout) -> List[str]:
    """Report the pods displaced by removing a node; committed state is left as is."""
    with snapshot.trial():
        record = snapshot.node_view().get(node_name)
        displaced = sorted("/".join(pod_key(pod)) for pod in record.pods)
        snapshot.remove_node(node_name)
        print(f"removing {node_name} displaces {len(displaced)} pods", file=out)
        for key in displaced:
            print(f"  {key}", file=out)
        print("state during trial:", file=out)
        print_summary(snapshot, out)
    print("committed state:", file=out)
    print_summary(snapshot, out)
    return displaced


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Cluster snapshot what-if tool")
    parser.add_argument("--config", default=None, help="YAML config file")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    sub = parser.add_subparsers(dest="command", required=True)

    p_summary = sub.add_parser("summary", help="Print nodes and pods in the manifests")
    p_summary.add_argument("paths", nargs="*")

    p_remove = sub.add_parser("what-if-remove", help="Simulate removing a node")
    p_remove.add_argument("node")
    p_remove.add_argument("paths", nargs="*")

    args = parser.parse_args(argv)

    try:
        cfg = load_config(args.config)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    logging.basicConfig(
        level=(args.log_level or cfg.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        snapshot = build_snapshot(cfg, args.paths)
        if args.command == "summary":
            print_summary(snapshot)
        else:
            what_if_remove(snapshot, args.node)
    except (ManifestError, SnapshotError) as e:
        logger.error(f"{e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
