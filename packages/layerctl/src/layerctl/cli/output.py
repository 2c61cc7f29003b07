"""CLI payload output helpers."""

from __future__ import annotations

import sys

from .. import __version__
from ..core.serialize import dumps_json


def emit(payload: dict[str, object], as_json: bool) -> None:
    print(dumps_json(payload, pretty=not as_json))


def build_base_payload(run_id: str, status: str = "ok") -> dict[str, object]:
    return {
        "schema_version": 1,
        "tool": "layerctl",
        "tool_version": __version__,
        "status": status,
        "run_id": run_id,
    }


def resolve_output_format(*, cli_json: bool, cli_format: str | None) -> str:
    if cli_json:
        return "json"
    return cli_format or "text"


def render_error(*, as_json: bool, message: str, code: int) -> str:
    if as_json:
        return dumps_json(
            {
                "schema_name": "layerctl.error.v1",
                "schema_version": 1,
                "tool": "layerctl",
                "status": "error",
                "errors": [{"code": code, "message": message}],
            },
            pretty=False,
        )
    return message


def print_error(*, as_json: bool, message: str, code: int) -> None:
    print(render_error(as_json=as_json, message=message, code=code), file=sys.stderr)
