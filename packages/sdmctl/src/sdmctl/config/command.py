from __future__ import annotations

import argparse
from pathlib import Path

from ..cli.output import build_base_payload, emit_result
from ..core.context import RunContext
from ..core.serialize import dumps_json
from ..exit_codes import ERR_CONFIG
from .loader import resolve_payload, validate_configuration


def run_config_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    if ns.config_cmd == "dump":
        payload = {**build_base_payload(ctx), "config": ctx.config.to_payload(redact=not ns.show_secrets)}
        emit_result(ctx, payload, ns.json, dumps_json(payload["config"], pretty=True))
        return 0
    if ns.config_cmd == "validate":
        target = Path(ns.file) if ns.file else None
        errors = validate_configuration(resolve_payload(target))
        payload = {
            **build_base_payload(ctx, "ok" if not errors else "error"),
            "file": str(target) if target else None,
            "errors": errors,
        }
        text = "configuration: ok" if not errors else "\n".join(["configuration: invalid", *(f"- {e}" for e in errors)])
        emit_result(ctx, payload, ns.json, text)
        return 0 if not errors else ERR_CONFIG
    return 2


def configure_config_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("config", help="configuration commands")
    config_sub = p.add_subparsers(dest="config_cmd", required=True)
    dump = config_sub.add_parser("dump", help="print the resolved configuration")
    dump.add_argument("--show-secrets", action="store_true", help="do not redact tokens and passwords")
    dump.add_argument("--json", action="store_true", help="emit JSON output")
    validate = config_sub.add_parser("validate", help="validate a configuration file against the schema")
    validate.add_argument("--file", help="override file to validate (defaults to the active configuration)")
    validate.add_argument("--json", action="store_true", help="emit JSON output")
