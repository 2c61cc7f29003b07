from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .model import (
    NOT_ALLOWED,
    RELATIVE_IMPORT,
    RESTRICTED,
    ImportEdge,
    ImportKind,
    ImportStatement,
    Project,
    Violation,
)
from .paths import classify_import, resolve_relative_target, short_name
from .policy import LayeringPolicy, PolicySet
from .registry import PackageRegistry


class LayeringEvaluator:
    """Decides, per import statement, whether a package boundary is crossed illegally.

    The registry and policy set are fixed at construction; evaluation never
    mutates either, so one evaluator serves every file of a run.
    """

    def __init__(self, project: Project, registry: PackageRegistry, policies: PolicySet) -> None:
        self.project = project
        self.registry = registry
        self.policies = policies

    def short_name(self, full_name: str) -> str:
        return short_name(full_name, self.project.root_name)

    def is_internal(self, import_path: str) -> bool:
        return self.project.root_name in import_path

    def scope_for(self, file_path: Path) -> FileScope | None:
        package_name = self.registry.lookup(file_path)
        if package_name is None:
            return None
        return FileScope(
            evaluator=self,
            file_path=Path(file_path),
            package_name=package_name,
            policy=self.policies.resolve(self.short_name(package_name)),
        )

    def evaluate(self, file_path: Path, import_path: str, line: int = 0, column: int = 0) -> Violation | None:
        scope = self.scope_for(file_path)
        if scope is None:
            return None
        return scope.evaluate(import_path, line, column)

    def evaluate_file(self, file_path: Path, statements: Iterable[ImportStatement]) -> list[Violation]:
        scope = self.scope_for(file_path)
        if scope is None:
            return []
        return scope.evaluate_all(statements)

    def display_path(self, file_path: Path) -> str:
        path = Path(file_path).resolve()
        try:
            return path.relative_to(self.project.root).as_posix()
        except ValueError:
            return path.as_posix()


@dataclass(frozen=True)
class FileScope:
    evaluator: LayeringEvaluator
    file_path: Path
    package_name: str
    policy: LayeringPolicy

    @property
    def short_name(self) -> str:
        return self.evaluator.short_name(self.package_name)

    def edge(self, import_path: str) -> ImportEdge:
        kind = classify_import(import_path)
        if kind is ImportKind.RELATIVE:
            target = resolve_relative_target(import_path, self.file_path, self.evaluator.project)
        else:
            # Deep specifiers keep their subpath: `@root/ui/src/x` is `ui/src/x`.
            target = import_path
        return ImportEdge(
            source_file=self.file_path,
            source_package=self.package_name,
            import_path=import_path,
            kind=kind,
            target_package=target,
            target_short_name=None if target is None else self.evaluator.short_name(target),
        )

    def evaluate(self, import_path: str, line: int = 0, column: int = 0) -> Violation | None:
        if not self.evaluator.is_internal(import_path):
            return None
        edge = self.edge(import_path)
        if edge.kind is ImportKind.RELATIVE:
            if edge.target_package != self.package_name:
                return self._violation(RELATIVE_IMPORT, "Layer-breaking relative import detected", line, column)
            return None
        target = edge.target_short_name or ""
        if not self.policy.allows(target):
            message = f'Layer-breaking: "{target}" is not in allow-list of "{self.short_name}"'
            return self._violation(NOT_ALLOWED, message, line, column)
        if self.policy.restricts(target):
            message = f'Layer-breaking: "{self.short_name}" is restricted from importing "{target}"'
            return self._violation(RESTRICTED, message, line, column)
        return None

    def evaluate_all(self, statements: Iterable[ImportStatement]) -> list[Violation]:
        out: list[Violation] = []
        for stmt in statements:
            found = self.evaluate(stmt.specifier, stmt.line, stmt.column)
            if found is not None:
                out.append(found)
        return out

    def _violation(self, code: str, message: str, line: int, column: int) -> Violation:
        return Violation(
            code=code,
            message=message,
            path=self.evaluator.display_path(self.file_path),
            line=line,
            column=column,
        )
