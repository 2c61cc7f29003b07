from __future__ import annotations

from pathlib import Path

import pytest

from layerctl.layering.evaluator import LayeringEvaluator
from layerctl.layering.model import (
    NOT_ALLOWED,
    RELATIVE_IMPORT,
    RESTRICTED,
    VIOLATION_MARKER,
    ImportKind,
    ImportStatement,
    Project,
)
from layerctl.layering.policy import PolicySet, parse_policies
from layerctl.layering.registry import PackageRegistry


def _evaluator(repo: Path, policies: PolicySet | None = None) -> LayeringEvaluator:
    project = Project.from_root(repo)
    return LayeringEvaluator(project, PackageRegistry.build(project), policies or PolicySet())


@pytest.fixture
def core_file(monorepo: Path) -> Path:
    return monorepo / "acme-core/src/index.ts"


def test_restrict_list_blocks_allowed_import(monorepo: Path, core_file: Path) -> None:
    evaluator = _evaluator(monorepo, parse_policies([{"target": "core", "allow": ["*"], "restrict": ["ui"]}]))
    found = evaluator.evaluate(core_file, "@acme/ui", line=3, column=1)
    assert found is not None
    assert found.code == RESTRICTED
    assert found.message == 'Layer-breaking: "core" is restricted from importing "ui"'
    assert (found.path, found.line, found.column) == ("acme-core/src/index.ts", 3, 1)
    assert set(found.to_row()) == {"code", "message", "path", "line", "column"}
    assert evaluator.evaluate(core_file, "@acme/data") is None


def test_allow_list_rejects_unlisted_package(monorepo: Path, core_file: Path) -> None:
    evaluator = _evaluator(monorepo, parse_policies([{"target": "core", "allow": ["data"], "restrict": []}]))
    found = evaluator.evaluate(core_file, "@acme/ui")
    assert found is not None
    assert found.code == NOT_ALLOWED
    assert found.message == 'Layer-breaking: "ui" is not in allow-list of "core"'
    assert evaluator.evaluate(core_file, "@acme/data") is None


def test_allow_failure_is_reported_once(monorepo: Path, core_file: Path) -> None:
    evaluator = _evaluator(monorepo, parse_policies([{"target": "core", "allow": ["data"], "restrict": ["ui"]}]))
    found = evaluator.evaluate_file(core_file, [ImportStatement("@acme/ui", 1, 1)])
    assert [v.code for v in found] == [NOT_ALLOWED]


def test_deep_absolute_import_is_matched_by_full_subpath(monorepo: Path, core_file: Path) -> None:
    evaluator = _evaluator(monorepo, parse_policies([{"target": "core", "allow": ["ui", "data/src/load"]}]))
    assert evaluator.evaluate(core_file, "@acme/ui") is None
    assert evaluator.evaluate(core_file, "@acme/data/src/load") is None
    found = evaluator.evaluate(core_file, "@acme/ui/src/widget")
    assert found is not None and found.code == NOT_ALLOWED
    assert found.message == 'Layer-breaking: "ui/src/widget" is not in allow-list of "core"'


def test_packages_without_policy_are_unrestricted(monorepo: Path) -> None:
    evaluator = _evaluator(monorepo, parse_policies([{"target": "core", "allow": []}]))
    widget = monorepo / "acme-ui/src/widget.tsx"
    for target in ("@acme/core", "@acme/data", "@acme/anything"):
        assert evaluator.evaluate(widget, target) is None


@pytest.mark.parametrize("import_path", ["react", "lodash/fp", "../shared/util", "@other/ui"])
def test_external_imports_are_ignored(monorepo: Path, core_file: Path, import_path: str) -> None:
    evaluator = _evaluator(monorepo, parse_policies([{"target": "core", "allow": [], "restrict": ["ui"]}]))
    assert not evaluator.is_internal(import_path)
    assert evaluator.evaluate(core_file, import_path) is None


def test_relative_import_into_sibling_package_is_always_a_violation(monorepo: Path, core_file: Path) -> None:
    evaluator = _evaluator(monorepo, parse_policies([{"target": "core", "allow": ["*", "ui"]}]))
    found = evaluator.evaluate(core_file, "../../acme-ui/src/widget", line=5, column=1)
    assert found is not None
    assert found.code == RELATIVE_IMPORT
    assert found.message == "Layer-breaking relative import detected"


def test_relative_import_within_own_package_passes(monorepo: Path, core_file: Path) -> None:
    evaluator = _evaluator(monorepo, parse_policies([{"target": "core", "allow": []}]))
    assert evaluator.evaluate(core_file, "../../acme-core/src/helper") is None


def test_unresolvable_relative_import_fails_closed(monorepo: Path, core_file: Path) -> None:
    evaluator = _evaluator(monorepo)
    found = evaluator.evaluate(core_file, "../../acme-gone/src/x")
    assert found is not None and found.code == RELATIVE_IMPORT


def test_files_outside_registry_are_skipped(monorepo: Path, tmp_path: Path) -> None:
    evaluator = _evaluator(monorepo, parse_policies([{"target": "core", "allow": []}]))
    stray = tmp_path / "outside/tool.ts"
    assert evaluator.scope_for(stray) is None
    assert evaluator.evaluate(stray, "../../acme-ui/x") is None
    assert evaluator.evaluate_file(stray, [ImportStatement("@acme/ui")]) == []


def test_scope_exposes_policy_and_edges(monorepo: Path, core_file: Path) -> None:
    evaluator = _evaluator(monorepo, parse_policies([{"target": "core", "allow": ["data"]}]))
    scope = evaluator.scope_for(core_file)
    assert scope is not None
    assert scope.package_name == "@acme/core"
    assert scope.short_name == "core"
    assert scope.policy.allow == frozenset({"data"})

    absolute = scope.edge("@acme/data/src/load")
    assert absolute.kind is ImportKind.ABSOLUTE
    assert (absolute.target_package, absolute.target_short_name) == ("@acme/data/src/load", "data/src/load")

    relative = scope.edge("../../acme-ui/src/widget")
    assert relative.kind is ImportKind.RELATIVE
    assert (relative.target_package, relative.target_short_name) == ("@acme/ui", "ui")

    missing = scope.edge("../acme-gone")
    assert missing.target_package is None and missing.target_short_name is None


def test_root_package_files_use_root_short_name(monorepo: Path) -> None:
    evaluator = _evaluator(monorepo, parse_policies([{"target": "acme", "allow": ["core"]}]))
    script = monorepo / "scripts/release.mjs"
    assert evaluator.evaluate(script, "@acme/core") is None
    found = evaluator.evaluate(script, "@acme/ui")
    assert found is not None
    assert found.message == 'Layer-breaking: "ui" is not in allow-list of "acme"'


def test_evaluate_file_keeps_statement_positions(monorepo: Path, core_file: Path) -> None:
    evaluator = _evaluator(monorepo, parse_policies([{"target": "core", "allow": ["data"]}]))
    statements = [
        ImportStatement("@acme/ui", 1, 1),
        ImportStatement("react", 2, 1),
        ImportStatement("../../acme-ui/src/widget", 4, 3),
    ]
    found = evaluator.evaluate_file(core_file, statements)
    assert [(v.code, v.line, v.column) for v in found] == [(NOT_ALLOWED, 1, 1), (RELATIVE_IMPORT, 4, 3)]
    assert found[0].render() == f'{VIOLATION_MARKER} Layer-breaking: "ui" is not in allow-list of "core" {VIOLATION_MARKER}'
