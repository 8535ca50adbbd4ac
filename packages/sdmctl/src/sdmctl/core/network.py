"""Centralized network boundary helpers."""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Any

from ..errors import ScriptError
from ..exit_codes import ERR_NETWORK


def http_json(
    method: str,
    url: str,
    payload: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: int = 30,
) -> Any:
    data = json.dumps(payload).encode("utf-8") if payload is not None else None
    req = urllib.request.Request(url, data=data, method=method)
    req.add_header("Accept", "application/json")
    if data is not None:
        req.add_header("Content-Type", "application/json")
    for key, value in (headers or {}).items():
        req.add_header(key, value)
    try:
        with urllib.request.urlopen(req, timeout=timeout_seconds) as resp:  # nosec - caller controls endpoint
            body = resp.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="replace") if exc.fp is not None else ""
        raise ScriptError(f"{method} {url} failed with HTTP {exc.code}: {detail}".strip(), ERR_NETWORK, kind="http_error") from exc
    except urllib.error.URLError as exc:
        raise ScriptError(f"{method} {url} failed: {exc.reason}", ERR_NETWORK, kind="network_error") from exc
    return json.loads(body) if body.strip() else {}
