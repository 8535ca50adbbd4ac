"""CLI payload output helpers."""

from __future__ import annotations

from .. import __version__
from ..core.serialize import dumps_json
from ..sdm.messages import BufferedMessageClient


def emit(payload: dict[str, object], as_json: bool) -> None:
    print(dumps_json(payload, pretty=not as_json))


def build_base_payload(ctx, status: str = "ok") -> dict[str, object]:
    return {
        "schema_version": 1,
        "tool": "sdmctl",
        "status": status,
        "run_id": ctx.run_id,
        "repo_root": str(ctx.repo_root),
        "format": ctx.output_format,
        "git_sha": ctx.git_sha,
        "git_dirty": ctx.git_dirty,
    }


def version_payload(ctx) -> dict[str, object]:
    return {**build_base_payload(ctx), "sdmctl_version": __version__, "sdm_name": ctx.config.name}


def resolve_output_format(*, cli_json: bool, cli_format: str | None, ci_present: bool) -> str:
    if cli_json:
        return "json"
    if cli_format:
        return cli_format
    return "json" if ci_present else "text"


def render_error(*, as_json: bool, message: str, code: int, kind: str = "generic_error", run_id: str = "") -> str:
    if as_json:
        return dumps_json(
            {
                "schema_name": "sdmctl.error.v1",
                "schema_version": 1,
                "tool": "sdmctl",
                "status": "error",
                "run_id": run_id,
                "errors": [{"code": code, "kind": kind, "message": message}],
            },
            pretty=False,
        )
    return message


def render_messages(messages: BufferedMessageClient) -> str:
    return "\n".join(messages.texts())


def emit_result(ctx, payload: dict[str, object], as_json: bool, text: str) -> None:
    """Print the payload as JSON, or the human summary in text mode."""
    if as_json or ctx.output_format == "json":
        emit(payload, True)
    else:
        print(text)
