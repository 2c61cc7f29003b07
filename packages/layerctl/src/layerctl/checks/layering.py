from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from ..config import LayeringConfig, load_config
from ..layering.evaluator import LayeringEvaluator
from ..layering.imports import collect_sources, read_imports
from ..layering.model import Project, Violation
from ..layering.registry import PackageRegistry, SkippedManifest

FileHook = Callable[[Path, int, int], None]


@dataclass(frozen=True)
class LayeringReport:
    project: Project
    package_count: int
    file_count: int
    import_count: int
    unowned_files: tuple[str, ...]
    violations: tuple[Violation, ...]
    skipped_manifests: tuple[SkippedManifest, ...]
    duration_ms: int

    @property
    def status(self) -> str:
        return "pass" if not self.violations else "fail"

    def to_payload(self, run_id: str = "") -> dict[str, object]:
        return {
            "schema_name": "layerctl.layering_report.v1",
            "schema_version": 1,
            "tool": "layerctl",
            "kind": "layering-check",
            "status": self.status,
            "run_id": run_id,
            "project_root": str(self.project.root),
            "root_name": self.project.root_name,
            "package_count": self.package_count,
            "file_count": self.file_count,
            "import_count": self.import_count,
            "unowned_files": list(self.unowned_files),
            "violation_count": len(self.violations),
            "violations": [v.to_row() for v in self.violations],
            "skipped_manifests": [{"path": str(s.path), "reason": s.reason} for s in self.skipped_manifests],
            "duration_ms": self.duration_ms,
        }


def run_layering_check(
    project: Project,
    config: LayeringConfig,
    paths: Iterable[Path] = (),
    strict: bool = False,
    registry: PackageRegistry | None = None,
    on_file: FileHook | None = None,
) -> LayeringReport:
    start = time.perf_counter()
    registry = registry if registry is not None else PackageRegistry.build(project, strict=strict)
    evaluator = LayeringEvaluator(project, registry, config.policies)
    files = collect_sources(project, paths, config.extensions, config.exclude)
    violations: list[Violation] = []
    unowned: list[str] = []
    import_count = 0
    for path in files:
        scope = evaluator.scope_for(path)
        if scope is None:
            unowned.append(evaluator.display_path(path))
            continue
        statements = read_imports(path)
        found = scope.evaluate_all(statements)
        import_count += len(statements)
        violations.extend(found)
        if on_file is not None:
            on_file(path, len(statements), len(found))
    return LayeringReport(
        project=project,
        package_count=len(registry),
        file_count=len(files),
        import_count=import_count,
        unowned_files=tuple(unowned),
        violations=tuple(sorted(violations, key=lambda v: v.canonical_key)),
        skipped_manifests=registry.skipped,
        duration_ms=int((time.perf_counter() - start) * 1000),
    )


def check_layering(repo_root: Path) -> tuple[int, list[str]]:
    config = load_config(repo_root)
    project = Project.from_root(repo_root, config.manifest, config.vendor_dir)
    report = run_layering_check(project, config)
    errors = [f"{v.path}:{v.line}:{v.column}: {v.code} {v.message}" for v in report.violations]
    return (0 if not errors else 1), errors
