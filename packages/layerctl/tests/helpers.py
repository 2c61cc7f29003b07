from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[3]
SRC = ROOT / "packages/layerctl/src"

ROOT_NAME = "acme"


def write_json(path: Path, payload: object) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    return path


def write_text(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def make_monorepo(repo: Path) -> Path:
    """Lay out a three-package repository rooted at `repo`.

    acme-core -> @acme/core, acme-ui -> @acme/ui, acme-data -> @acme/data,
    plus root-owned scripts and vendor directories holding decoy manifests.
    """
    write_json(repo / "package.json", {"name": ROOT_NAME, "private": True})
    write_json(repo / "acme-core/package.json", {"name": "@acme/core"})
    write_json(repo / "acme-ui/package.json", {"name": "@acme/ui"})
    write_json(repo / "acme-data/package.json", {"name": "@acme/data"})
    write_json(repo / "node_modules/@acme/vendored/package.json", {"name": "@acme/vendored"})
    write_json(repo / "acme-ui/node_modules/left-pad/package.json", {"name": "left-pad"})
    write_text(
        repo / "acme-core/src/index.ts",
        "\n".join(
            [
                'import { Button } from "@acme/ui";',
                'import { load } from "@acme/data";',
                'import React from "react";',
                'import { helper } from "../../acme-core/src/helper";',
                'import { widget } from "../../acme-ui/src/widget";',
                "",
            ]
        ),
    )
    write_text(repo / "acme-core/src/helper.ts", "export const helper = 1;\n")
    write_text(repo / "acme-ui/src/widget.tsx", 'import { helper } from "@acme/core";\nexport const widget = helper;\n')
    write_text(repo / "acme-data/src/load.ts", "export function load() {}\n")
    write_text(repo / "scripts/release.mjs", 'import "@acme/core";\n')
    write_text(repo / "node_modules/@acme/vendored/index.js", 'import "@acme/ui";\n')
    return repo


def run_layerctl(*args: str, cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    existing = env.get("PYTHONPATH", "")
    env["PYTHONPATH"] = f"{SRC}{os.pathsep}{existing}" if existing else str(SRC)
    env.setdefault("RUN_ID", "pytest-run")
    return subprocess.run(
        [sys.executable, "-m", "layerctl", *args],
        cwd=(cwd or ROOT),
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )
