from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from ..config.loader import SdmConfiguration, load_configuration
from .git import read_git_context

OutputFormat = Literal["text", "json"]


@dataclass(frozen=True)
class RunContext:
    run_id: str
    repo_root: Path
    output_format: OutputFormat
    verbose: bool
    quiet: bool
    log_json: bool
    git_sha: str
    git_dirty: bool
    config: SdmConfiguration

    @classmethod
    def from_args(
        cls,
        run_id: str | None,
        repo_root: str | None,
        output_format: OutputFormat = "text",
        verbose: bool = False,
        quiet: bool = False,
        log_json: bool = False,
        config_path: str | None = None,
    ) -> "RunContext":
        root = Path(repo_root or os.getcwd()).resolve()
        git_ctx = read_git_context(root)
        default_run = f"sdm-{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}-{git_ctx.sha}"
        config = load_configuration(Path(config_path) if config_path else None)
        return cls(
            run_id=run_id or os.environ.get("RUN_ID", default_run),
            repo_root=root,
            output_format=output_format,
            verbose=verbose,
            quiet=quiet,
            log_json=log_json,
            git_sha=git_ctx.sha,
            git_dirty=git_ctx.is_dirty,
            config=config,
        )
