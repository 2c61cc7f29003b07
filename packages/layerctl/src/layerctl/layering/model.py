from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..errors import ScriptError
from ..exit_codes import ERR_CONFIG
from .manifest import ManifestError, read_manifest_name

DEFAULT_MANIFEST = "package.json"
DEFAULT_VENDOR_DIR = "node_modules"

VIOLATION_MARKER = "\U0001f6a8"

RELATIVE_IMPORT = "LAYER_RELATIVE_IMPORT"
NOT_ALLOWED = "LAYER_NOT_ALLOWED"
RESTRICTED = "LAYER_RESTRICTED"


class ImportKind(str, Enum):
    RELATIVE = "relative"
    ABSOLUTE = "absolute"


@dataclass(frozen=True)
class Project:
    """The repository being checked.

    `root_name` is the name declared by the root manifest; it is both the
    root-namespace token used to recognise internal imports and the scope
    stripped from package names (`@<root_name>/`).
    """

    root: Path
    root_name: str
    manifest: str = DEFAULT_MANIFEST
    vendor_dir: str = DEFAULT_VENDOR_DIR

    @classmethod
    def from_root(cls, root: Path, manifest: str = DEFAULT_MANIFEST, vendor_dir: str = DEFAULT_VENDOR_DIR) -> "Project":
        resolved = Path(root).resolve()
        try:
            name = read_manifest_name(resolved / manifest)
        except ManifestError as exc:
            raise ScriptError(f"cannot determine root namespace: {exc}", ERR_CONFIG, kind="root_manifest") from exc
        return cls(root=resolved, root_name=name, manifest=manifest, vendor_dir=vendor_dir)

    @property
    def scope_prefix(self) -> str:
        return f"@{self.root_name}/"


@dataclass(frozen=True)
class ImportStatement:
    specifier: str
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class ImportEdge:
    source_file: Path
    source_package: str
    import_path: str
    kind: ImportKind
    target_package: str | None = None
    target_short_name: str | None = None


@dataclass(frozen=True)
class Violation:
    code: str
    message: str
    path: str = ""
    line: int = 0
    column: int = 0

    @property
    def canonical_key(self) -> tuple[str, int, int, str]:
        return (self.path, self.line, self.column, self.code)

    def render(self) -> str:
        return f"{VIOLATION_MARKER} {self.message} {VIOLATION_MARKER}"

    def to_row(self) -> dict[str, object]:
        return {
            "code": self.code,
            "message": self.message,
            "path": self.path,
            "line": self.line,
            "column": self.column,
        }
