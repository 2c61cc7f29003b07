from __future__ import annotations

import posixpath
from pathlib import Path

from .manifest import try_read_manifest_name
from .model import ImportKind, Project

PARENT_SEGMENT = ".."
_NON_NAME_SEGMENTS = frozenset({"", ".", PARENT_SEGMENT})


def is_relative_import(import_path: str) -> bool:
    # Any `..` counts, not only a leading one.
    return PARENT_SEGMENT in import_path


def classify_import(import_path: str) -> ImportKind:
    return ImportKind.RELATIVE if is_relative_import(import_path) else ImportKind.ABSOLUTE


def short_name(full_name: str, root_name: str) -> str:
    prefix = f"@{root_name}/"
    name = full_name
    while name.startswith(prefix):
        name = name[len(prefix) :]
    return name


def relative_target_dir(import_path: str) -> str | None:
    normalized = posixpath.normpath(import_path)
    for segment in normalized.split("/"):
        if segment not in _NON_NAME_SEGMENTS:
            return segment
    return None


def resolve_relative_target(import_path: str, current_file: Path, project: Project) -> str | None:
    """Name of the package a relative import lands in, or None.

    The first meaningful segment of the normalized path is taken as a
    directory directly under `project.root`; `current_file` does not move
    that anchor. A missing or unreadable manifest yields None.
    """
    segment = relative_target_dir(import_path)
    if segment is None:
        return None
    return try_read_manifest_name(project.root / segment / project.manifest)
