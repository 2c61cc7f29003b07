from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

OutputFormat = Literal["text", "json"]


@dataclass(frozen=True)
class RunContext:
    run_id: str
    project_root: Path
    output_format: OutputFormat
    verbose: bool
    quiet: bool
    log_json: bool

    @classmethod
    def from_args(
        cls,
        run_id: str | None,
        root: str | None,
        output_format: OutputFormat = "text",
        verbose: bool = False,
        quiet: bool = False,
        log_json: bool = False,
    ) -> "RunContext":
        default_run = f"layerctl-{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}"
        resolved_run_id = run_id or os.environ.get("RUN_ID", default_run)
        project_root = Path(root).resolve() if root else Path.cwd().resolve()
        return cls(
            run_id=resolved_run_id,
            project_root=project_root,
            output_format=output_format,
            verbose=verbose,
            quiet=quiet,
            log_json=log_json or os.environ.get("LAYERCTL_LOG_JSON") == "1",
        )
