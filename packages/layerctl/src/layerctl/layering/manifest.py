"""Manifest readers.

Only the `name` field of a manifest is ever consulted.
"""

from __future__ import annotations

import json
from pathlib import Path

from ..errors import ScriptError
from ..exit_codes import ERR_CONFIG


class ManifestError(ScriptError):
    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message, ERR_CONFIG, "manifest")
        self.path = path


def read_manifest_name(path: Path) -> str:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ManifestError(f"unable to read manifest {path}: {exc.strerror or exc}", path) from exc
    except json.JSONDecodeError as exc:
        raise ManifestError(f"malformed manifest {path}: {exc.msg} (line {exc.lineno})", path) from exc
    if not isinstance(payload, dict):
        raise ManifestError(f"malformed manifest {path}: root must be an object", path)
    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ManifestError(f"manifest {path} does not declare a `name`", path)
    return name.strip()


def try_read_manifest_name(path: Path) -> str | None:
    try:
        return read_manifest_name(path)
    except ManifestError:
        return None
