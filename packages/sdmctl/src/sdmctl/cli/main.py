from __future__ import annotations

import argparse
import importlib
import os
import sys

from .. import __version__
from ..core.context import RunContext
from ..core.logging import log_event
from ..errors import ScriptError
from ..exit_codes import ERR_CONFIG, ERR_INTERNAL, ERR_USAGE
from .constants import COMMAND_RUNNERS, CONFIGURE_HOOKS
from .output import emit, render_error, resolve_output_format, version_payload


def _import_attr(module_name: str, attr: str):
    return getattr(importlib.import_module(module_name), attr)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="sdmctl", description="Atomist software delivery machine tooling")
    p.add_argument("--version", action="version", version=f"sdmctl {__version__}")
    p.add_argument("--json", action="store_true", help="emit JSON output")
    p.add_argument("--run-id", help="run identifier for logs and payloads")
    p.add_argument("--cwd", help="run command from an explicit repository root")
    p.add_argument("--config", help="configuration override file (YAML)")
    p.add_argument("--format", choices=["text", "json"], default=None, help="output format")
    p.add_argument("--log-json", action="store_true", help="emit structured logs as JSON lines")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable verbose diagnostics")
    vg.add_argument("--quiet", action="store_true", help="only emit errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    version_p = sub.add_parser("version", help="print version and git context")
    version_p.add_argument("--json", action="store_true", help="emit JSON output")
    for module_name, attr in CONFIGURE_HOOKS:
        _import_attr(module_name, attr)(sub)
    return p


def main(argv: list[str] | None = None) -> int:
    raw_argv = argv if argv is not None else sys.argv[1:]
    p = build_parser()
    ns = p.parse_args(argv)
    ctx: RunContext | None = None
    try:
        if ns.format and "--json" in raw_argv and ns.format != "json":
            raise ScriptError("conflicting output flags: use either --format json or --json", ERR_CONFIG)
        fmt = resolve_output_format(cli_json=("--json" in raw_argv), cli_format=ns.format, ci_present=bool(os.environ.get("CI")))
        ctx = RunContext.from_args(ns.run_id, ns.cwd, fmt, ns.verbose, ns.quiet, ns.log_json, ns.config)
        log_event(ctx, "info", "cli", "start", cmd=ns.cmd, fmt=ctx.output_format)
        as_json = ctx.output_format == "json" or bool(getattr(ns, "json", False))
        if ns.cmd == "version":
            payload = version_payload(ctx)
            if as_json:
                emit(payload, True)
            else:
                print(f"sdmctl {__version__} ({ctx.config.name}, git {ctx.git_sha})")
            return 0
        runner = COMMAND_RUNNERS.get(ns.cmd)
        if runner is None:
            return ERR_USAGE
        return _import_attr(*runner)(ctx, ns)
    except ScriptError as exc:
        as_json = ctx.output_format == "json" if ctx is not None else "--json" in raw_argv
        print(
            render_error(
                as_json=as_json,
                message=str(exc),
                code=exc.code,
                kind=exc.kind,
                run_id=ctx.run_id if ctx is not None else "",
            ),
            file=sys.stderr,
        )
        return exc.code
    except Exception as exc:  # pragma: no cover
        as_json = ctx is not None and ctx.output_format == "json"
        print(render_error(as_json=as_json, message=f"internal error: {exc}", code=ERR_INTERNAL), file=sys.stderr)
        return ERR_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
