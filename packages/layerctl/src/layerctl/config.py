from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .contracts import validate
from .errors import ScriptError
from .exit_codes import ERR_CONFIG
from .layering.imports import DEFAULT_EXCLUDE, DEFAULT_EXTENSIONS
from .layering.model import DEFAULT_MANIFEST, DEFAULT_VENDOR_DIR
from .layering.policy import LayeringPolicy, PolicySet, parse_policies

CONFIG_CANDIDATES = ("layering.yaml", "layering.yml", "layering.json")


@dataclass(frozen=True)
class LayeringConfig:
    path: Path | None = None
    manifest: str = DEFAULT_MANIFEST
    vendor_dir: str = DEFAULT_VENDOR_DIR
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    exclude: tuple[str, ...] = DEFAULT_EXCLUDE
    policies: PolicySet = field(default_factory=PolicySet)

    def to_payload(self) -> dict[str, object]:
        return {
            "path": None if self.path is None else str(self.path),
            "manifest": self.manifest,
            "vendor_dir": self.vendor_dir,
            "extensions": list(self.extensions),
            "exclude": list(self.exclude),
            "policies": [policy.to_row() for policy in self.policies.policies],
        }


def find_config(project_root: Path) -> Path | None:
    for name in CONFIG_CANDIDATES:
        candidate = project_root / name
        if candidate.is_file():
            return candidate
    return None


def _load_yaml(path: Path) -> Any:
    try:
        import yaml
    except ModuleNotFoundError as exc:  # pragma: no cover
        raise ScriptError("PyYAML is required for YAML layering configs", ERR_CONFIG) from exc
    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ScriptError(f"malformed config {path}: {exc}", ERR_CONFIG) from exc


def load_config_payload(path: Path) -> Any:
    if not path.is_file():
        raise ScriptError(f"config file not found: {path}", ERR_CONFIG)
    if path.suffix.lower() in {".yaml", ".yml"}:
        return _load_yaml(path)
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ScriptError(f"malformed config {path}: {exc.msg} (line {exc.lineno})", ERR_CONFIG) from exc


def parse_config(payload: Any, path: Path | None = None) -> LayeringConfig:
    """Accept either a bare policy list or a settings mapping with `policies`."""
    if isinstance(payload, list):
        policies, settings = parse_policies(payload), {}
    else:
        validate("layerctl.config.v1", payload)
        rows = payload.get("policies", [])
        policies, settings = PolicySet(tuple(LayeringPolicy.from_mapping(row) for row in rows)), payload
    return LayeringConfig(
        path=path,
        manifest=str(settings.get("manifest", DEFAULT_MANIFEST)),
        vendor_dir=str(settings.get("vendor_dir", DEFAULT_VENDOR_DIR)),
        extensions=tuple(settings.get("extensions", DEFAULT_EXTENSIONS)),
        exclude=tuple(settings.get("exclude", DEFAULT_EXCLUDE)),
        policies=policies,
    )


def load_config(project_root: Path, explicit: Path | None = None) -> LayeringConfig:
    path = explicit if explicit is not None else find_config(project_root)
    if path is None:
        return LayeringConfig()
    payload = load_config_payload(path)
    if payload is None:
        raise ScriptError(f"empty config file: {path}", ERR_CONFIG)
    return parse_config(payload, path)
