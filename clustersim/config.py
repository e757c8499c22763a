"""Snapshot configuration.

Precedence (lowest to highest): dataclass defaults, YAML file, environment.

Environment variables:
CLUSTERSIM_ENFORCE_UNIQUE_PODS   reject add_pod of an identity already present (default: 1)
CLUSTERSIM_LOG_LEVEL             logging level name (default: INFO)
CLUSTERSIM_MANIFESTS             manifest files/directories, os.pathsep separated
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "CLUSTERSIM_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class ConfigError(ValueError):
	pass


@dataclass
class SnapshotConfig:
	enforce_unique_pods: bool = True
	log_level: str = "INFO"
	manifest_paths: List[str] = field(default_factory=list)


def parse_bool(value: Any, name: str = "value") -> bool:
	if isinstance(value, bool):
		return value
	text = str(value).strip().lower()
	if text in _TRUE:
		return True
	if text in _FALSE:
		return False
	raise ConfigError(f"{name}: cannot interpret {value!r} as a boolean")


def _apply(cfg: SnapshotConfig, data: Mapping[str, Any]) -> None:
	known = {f.name for f in fields(SnapshotConfig)}
	unknown = sorted(set(data) - known)
	if unknown:
		raise ConfigError(f"unknown config keys: {', '.join(unknown)}")

	if "enforce_unique_pods" in data:
		cfg.enforce_unique_pods = parse_bool(data["enforce_unique_pods"], "enforce_unique_pods")
	if "log_level" in data:
		cfg.log_level = str(data["log_level"]).upper()
	if "manifest_paths" in data:
		paths = data["manifest_paths"] or []
		if isinstance(paths, str):
			paths = [paths]
		cfg.manifest_paths = [str(p) for p in paths]


def _from_env(environ: Mapping[str, str]) -> Dict[str, Any]:
	data: Dict[str, Any] = {}
	if ENV_PREFIX + "ENFORCE_UNIQUE_PODS" in environ:
		data["enforce_unique_pods"] = environ[ENV_PREFIX + "ENFORCE_UNIQUE_PODS"]
	if ENV_PREFIX + "LOG_LEVEL" in environ:
		data["log_level"] = environ[ENV_PREFIX + "LOG_LEVEL"]
	if environ.get(ENV_PREFIX + "MANIFESTS"):
		data["manifest_paths"] = [p for p in environ[ENV_PREFIX + "MANIFESTS"].split(os.pathsep) if p]
	return data


def load_config(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> SnapshotConfig:
	"""Build a SnapshotConfig from an optional YAML file and the environment.

	A missing file is logged and ignored; a file that is not a YAML mapping,
	or carries unknown keys, raises ConfigError.
	"""
	cfg = SnapshotConfig()

	if path:
		p = Path(path)
		if not p.exists():
			logger.warning(f"Config file {path} not found, using defaults")
		else:
			try:
				with open(p, "r") as f:
					data = yaml.safe_load(f) or {}
			except yaml.YAMLError as e:
				raise ConfigError(f"{path}: invalid YAML: {e}") from e
			if not isinstance(data, dict):
				raise ConfigError(f"{path}: top level must be a mapping")
			_apply(cfg, data)
			logger.info(f"Loaded config from {path}")

	_apply(cfg, _from_env(os.environ if environ is None else environ))
	return cfg
