from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .. import __version__
from ..checks.layering import LayeringReport, run_layering_check
from ..config import LayeringConfig, load_config
from ..core.context import RunContext
from ..core.logging import log_event
from ..core.serialize import dumps_json
from ..errors import ScriptError
from ..exit_codes import ERR_INTERNAL, ERR_USAGE, ERR_VIOLATIONS, OK
from ..layering.evaluator import LayeringEvaluator
from ..layering.model import Project
from ..layering.paths import short_name
from ..layering.registry import PackageRegistry
from .output import build_base_payload, emit, print_error, resolve_output_format


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="layerctl", description="enforce package layering policies across a multi-package repository")
    p.add_argument("--version", action="version", version=f"layerctl {__version__}")
    p.add_argument("--root", help="project root holding the root manifest (default: current directory)")
    p.add_argument("--config", help="layering config file (default: layering.yaml|layering.yml|layering.json under the root)")
    p.add_argument("--format", choices=["text", "json"], default=None, help="output format")
    p.add_argument("--json", action="store_true", help="emit JSON output")
    p.add_argument("--run-id", help="run identifier stamped on logs and reports")
    p.add_argument("--log-json", action="store_true", help="emit structured log events as JSON")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable per-file diagnostics")
    vg.add_argument("--quiet", action="store_true", help="only emit errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    check_p = sub.add_parser("check", help="check every import against the layering policy")
    check_p.add_argument("paths", nargs="*", help="files or directories to check (default: whole project)")
    check_p.add_argument("--strict-manifests", action="store_true", help="fail on any unreadable manifest")
    check_p.add_argument("--out-file", help="also write the JSON report to this path")
    check_p.add_argument("--json", action="store_true", help="emit JSON output")

    packages_p = sub.add_parser("packages", help="list registered packages")
    packages_p.add_argument("--strict-manifests", action="store_true", help="fail on any unreadable manifest")
    packages_p.add_argument("--json", action="store_true", help="emit JSON output")

    explain_p = sub.add_parser("explain", help="evaluate one import as if written in FILE")
    explain_p.add_argument("file")
    explain_p.add_argument("import_path")
    explain_p.add_argument("--json", action="store_true", help="emit JSON output")

    policy_p = sub.add_parser("policy", help="print the effective policy of a package short name")
    policy_p.add_argument("target")
    policy_p.add_argument("--json", action="store_true", help="emit JSON output")

    validate_p = sub.add_parser("validate-config", help="load and validate the layering config")
    validate_p.add_argument("--json", action="store_true", help="emit JSON output")

    version_p = sub.add_parser("version", help="print the tool version")
    version_p.add_argument("--json", action="store_true", help="emit JSON output")
    return p


def _config_path(raw: str | None) -> Path | None:
    return Path(raw).resolve() if raw else None


def _render_check_text(report: LayeringReport) -> str:
    lines = [f"{v.path}:{v.line}:{v.column}: {v.code} {v.render()}" for v in report.violations]
    lines.append(
        f"layering: status={report.status} packages={report.package_count} files={report.file_count} "
        f"imports={report.import_count} violations={len(report.violations)}"
    )
    return "\n".join(lines)


def _run_check(ctx: RunContext, ns: argparse.Namespace, project: Project, config: LayeringConfig, as_json: bool) -> int:
    paths = [Path(raw) for raw in ns.paths]
    missing = [str(p) for p in paths if not p.exists()]
    if missing:
        raise ScriptError(f"paths do not exist: {', '.join(missing)}", ERR_USAGE)
    registry = _build_registry(ctx, project, ns.strict_manifests)

    def _on_file(path: Path, imports: int, violations: int) -> None:
        log_event(ctx, "debug", "check", "file", path=path.as_posix(), imports=imports, violations=violations)

    report = run_layering_check(project, config, paths, registry=registry, on_file=_on_file)
    payload = report.to_payload(ctx.run_id)
    if ns.out_file:
        out_path = Path(ns.out_file)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(dumps_json(payload, pretty=True) + "\n", encoding="utf-8")
    log_event(
        ctx,
        "info",
        "check",
        "done",
        files=report.file_count,
        imports=report.import_count,
        violations=len(report.violations),
        duration_ms=report.duration_ms,
    )
    if as_json:
        print(dumps_json(payload))
    else:
        print(_render_check_text(report))
    return OK if report.status == "pass" else ERR_VIOLATIONS


def _build_registry(ctx: RunContext, project: Project, strict: bool) -> PackageRegistry:
    registry = PackageRegistry.build(project, strict=strict)
    for skipped in registry.skipped:
        log_event(ctx, "warn", "registry", "skipped", path=skipped.path.as_posix(), reason=skipped.reason)
    log_event(ctx, "info", "registry", "built", packages=len(registry), root=project.root.as_posix())
    return registry


def _run_packages(ctx: RunContext, ns: argparse.Namespace, project: Project, as_json: bool) -> int:
    registry = _build_registry(ctx, project, ns.strict_manifests)
    rows = [
        {
            "root_dir": directory.relative_to(project.root).as_posix(),
            "name": name,
            "short_name": short_name(name, project.root_name),
        }
        for directory, name in registry.items()
    ]
    if as_json:
        emit({**build_base_payload(ctx.run_id), "root_name": project.root_name, "packages": rows}, True)
    else:
        for row in rows:
            print(f"{row['root_dir']}\t{row['name']}\t{row['short_name']}")
    return OK


def _run_explain(ctx: RunContext, ns: argparse.Namespace, project: Project, config: LayeringConfig, as_json: bool) -> int:
    registry = _build_registry(ctx, project, False)
    evaluator = LayeringEvaluator(project, registry, config.policies)
    file_path = Path(ns.file).resolve()
    payload: dict[str, object] = {
        **build_base_payload(ctx.run_id),
        "file": evaluator.display_path(file_path),
        "import_path": ns.import_path,
        "internal": evaluator.is_internal(ns.import_path),
    }
    scope = evaluator.scope_for(file_path)
    violation = None
    if scope is None:
        payload.update({"package": None, "verdict": "skip"})
    else:
        edge = scope.edge(ns.import_path)
        violation = scope.evaluate(ns.import_path)
        if not payload["internal"]:
            verdict = "external"
        else:
            verdict = "pass" if violation is None else "violation"
        payload.update(
            {
                "package": scope.package_name,
                "short_name": scope.short_name,
                "kind": edge.kind.value,
                "target_package": edge.target_package,
                "target_short_name": edge.target_short_name,
                "policy": scope.policy.to_row(),
                "verdict": verdict,
                "violation": None if violation is None else violation.to_row(),
            }
        )
    if as_json:
        emit(payload, True)
    else:
        for key in ("file", "package", "short_name", "import_path", "internal", "kind", "target_package", "verdict"):
            if key in payload:
                print(f"{key}: {payload[key]}")
        if violation is not None:
            print(f"message: {violation.render()}")
    return OK if violation is None else ERR_VIOLATIONS


def _run_policy(ctx: RunContext, ns: argparse.Namespace, config: LayeringConfig, as_json: bool) -> int:
    policy = config.policies.resolve(ns.target)
    if as_json:
        emit({**build_base_payload(ctx.run_id), "policy": policy.to_row()}, True)
    else:
        source = "explicit" if policy.explicit else "default"
        print(f"target: {policy.target} ({source})")
        print(f"allow: {', '.join(sorted(policy.allow)) or '-'}")
        print(f"restrict: {', '.join(sorted(policy.restrict)) or '-'}")
    return OK


def main(argv: list[str] | None = None) -> int:
    raw_argv = argv if argv is not None else sys.argv[1:]
    p = build_parser()
    ns = p.parse_args(raw_argv)
    fmt = resolve_output_format(cli_json="--json" in raw_argv, cli_format=ns.format)
    ctx = RunContext.from_args(ns.run_id, ns.root, fmt, ns.verbose, ns.quiet, ns.log_json)
    as_json = ctx.output_format == "json"
    try:
        log_event(ctx, "info", "cli", "start", cmd=ns.cmd, fmt=ctx.output_format)
        if ns.cmd == "version":
            if as_json:
                emit(build_base_payload(ctx.run_id), True)
            else:
                print(f"layerctl {__version__}")
            return OK
        config = load_config(ctx.project_root, _config_path(ns.config))
        for target in config.policies.duplicate_targets():
            log_event(ctx, "warn", "config", "duplicate-target", target=target)
        if ns.cmd == "validate-config":
            if as_json:
                emit({**build_base_payload(ctx.run_id), "config": config.to_payload()}, True)
            else:
                source = config.path if config.path is not None else "<defaults>"
                print(f"config ok: {source} ({len(config.policies)} policies)")
            return OK
        if ns.cmd == "policy":
            return _run_policy(ctx, ns, config, as_json)
        project = Project.from_root(ctx.project_root, config.manifest, config.vendor_dir)
        if ns.cmd == "check":
            return _run_check(ctx, ns, project, config, as_json)
        if ns.cmd == "packages":
            return _run_packages(ctx, ns, project, as_json)
        if ns.cmd == "explain":
            return _run_explain(ctx, ns, project, config, as_json)
        return ERR_USAGE
    except ScriptError as exc:
        print_error(as_json=as_json, message=str(exc), code=exc.code)
        return exc.code
    except Exception as exc:  # pragma: no cover
        print_error(as_json=as_json, message=f"internal error: {exc}", code=ERR_INTERNAL)
        return ERR_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
