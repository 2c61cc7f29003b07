from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping

from .manifest import ManifestError, read_manifest_name
from .model import Project


@dataclass(frozen=True)
class SkippedManifest:
    path: Path
    reason: str


@dataclass(frozen=True)
class PackageRegistry:
    """Directory to package-name map for every manifest under the project root.

    Built once by `build` and never mutated afterwards, so a single instance
    can be shared by any number of evaluators.
    """

    packages: Mapping[Path, str] = field(default_factory=lambda: MappingProxyType({}))
    skipped: tuple[SkippedManifest, ...] = ()

    @classmethod
    def build(cls, project: Project, strict: bool = False) -> "PackageRegistry":
        """Scan `project.root`, skipping every vendor directory.

        A manifest that cannot be read is recorded in `skipped`; with
        `strict=True` it aborts the build with `ManifestError` instead.
        """
        found: dict[Path, str] = {}
        skipped: list[SkippedManifest] = []
        for dirpath, dirnames, filenames in os.walk(project.root):
            dirnames[:] = sorted(d for d in dirnames if d != project.vendor_dir)
            if project.manifest not in filenames:
                continue
            directory = Path(dirpath)
            try:
                found[directory] = read_manifest_name(directory / project.manifest)
            except ManifestError as exc:
                if strict:
                    raise
                skipped.append(SkippedManifest(directory / project.manifest, exc.message))
        return cls(packages=MappingProxyType(found), skipped=tuple(skipped))

    def lookup_root(self, file_path: Path) -> Path | None:
        cur = Path(file_path).resolve().parent
        while True:
            if cur in self.packages:
                return cur
            if cur.parent == cur:
                return None
            cur = cur.parent

    def lookup(self, file_path: Path) -> str | None:
        root = self.lookup_root(file_path)
        return None if root is None else self.packages[root]

    def items(self) -> Iterator[tuple[Path, str]]:
        return iter(sorted(self.packages.items()))

    def __len__(self) -> int:
        return len(self.packages)

    def __contains__(self, directory: object) -> bool:
        return directory in self.packages
