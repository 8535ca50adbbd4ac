from __future__ import annotations

import copy
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import jsonschema
import yaml

from .. import __version__
from ..errors import ScriptError
from ..exit_codes import ERR_CONFIG

CONFIG_DIR = Path(__file__).resolve().parent
DEFAULTS_PATH = CONFIG_DIR / "defaults.yaml"
SCHEMA_PATH = CONFIG_DIR / "sdm-config.schema.json"

_ENV_OVERRIDES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("GITHUB_TOKEN", ("github", "token")),
    ("NPM_NPMRC", ("npm", "npmrc")),
    ("NPM_REGISTRY", ("npm", "registry")),
    ("DOCKER_REGISTRY", ("docker", "hub", "registry")),
    ("DOCKER_USER", ("docker", "hub", "user")),
    ("DOCKER_PASSWORD", ("docker", "hub", "password")),
    ("SDM_ENVIRONMENT", ("environment",)),
    ("SDM_LOCAL_MODE", ("local_mode",)),
)


@dataclass(frozen=True)
class NpmOptions:
    registry: str
    npmrc: str | None = None
    access: str = "restricted"


@dataclass(frozen=True)
class DockerOptions:
    registry: str
    user: str | None = None
    password: str | None = None


@dataclass(frozen=True)
class CacheOptions:
    enabled: bool
    path: str


@dataclass(frozen=True)
class SmokeTestTarget:
    team: str
    org: str
    port: int
    repo: str


@dataclass(frozen=True)
class SdmConfiguration:
    name: str
    version: str
    environment: str
    local_mode: bool
    github_api_url: str
    github_token: str | None
    npm: NpmOptions
    docker: DockerOptions
    cache: CacheOptions
    image_pull_secret: str
    deploy_enabled: tuple[str, ...]
    smoke_test: SmokeTestTarget
    homebrew_tap_repo: str
    badge_url: str
    approval_team: str
    community_team: str

    @property
    def footer(self) -> str:
        return f"{self.name}:{self.version}"

    def to_payload(self, redact: bool = True) -> dict[str, object]:
        def _secret(value: str | None) -> str | None:
            if value is None or not redact:
                return value
            return "***"

        return {
            "name": self.name,
            "version": self.version,
            "environment": self.environment,
            "local_mode": self.local_mode,
            "github": {"api_url": self.github_api_url, "token": _secret(self.github_token)},
            "npm": {"registry": self.npm.registry, "npmrc": _secret(self.npm.npmrc), "access": self.npm.access},
            "docker": {
                "hub": {
                    "registry": self.docker.registry,
                    "user": self.docker.user,
                    "password": _secret(self.docker.password),
                }
            },
            "cache": {"enabled": self.cache.enabled, "path": self.cache.path},
            "k8s": {"image_pull_secret": self.image_pull_secret},
            "deploy": {"enabled": list(self.deploy_enabled)},
            "smoke_test": {
                "team": self.smoke_test.team,
                "org": self.smoke_test.org,
                "port": self.smoke_test.port,
                "repo": self.smoke_test.repo,
            },
            "homebrew": {"tap_repo": self.homebrew_tap_repo},
            "badge": {"url": self.badge_url},
            "approval": {"github_team": self.approval_team},
            "policies": {"community_team": self.community_team},
        }


def load_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _set_path(payload: dict[str, Any], keys: tuple[str, ...], value: object) -> None:
    cur = payload
    for key in keys[:-1]:
        cur = cur.setdefault(key, {})
    cur[keys[-1]] = value


def apply_env_overrides(payload: dict[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    out = copy.deepcopy(payload)
    for name, keys in _ENV_OVERRIDES:
        raw = env.get(name)
        if raw is None or raw == "":
            continue
        value: object = raw.strip().lower() in {"1", "true", "yes", "on"} if keys == ("local_mode",) else raw
        _set_path(out, keys, value)
    return out


def validate_configuration(payload: dict[str, Any]) -> list[str]:
    schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    validator = jsonschema.Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(payload), key=lambda e: list(e.absolute_path))
    return [f"{'.'.join(str(p) for p in err.absolute_path) or '<root>'}: {err.message}" for err in errors]


def resolve_payload(path: Path | None = None, env: Mapping[str, str] | None = None) -> dict[str, Any]:
    env = os.environ if env is None else env
    payload = load_yaml(DEFAULTS_PATH)
    override_path = path or (Path(env["SDMCTL_CONFIG"]) if env.get("SDMCTL_CONFIG") else None)
    if override_path is not None:
        if not override_path.is_file():
            raise ScriptError(f"configuration file not found: {override_path}", ERR_CONFIG, kind="config_missing")
        override = load_yaml(override_path) or {}
        if not isinstance(override, dict):
            raise ScriptError(f"{override_path}: root must be mapping", ERR_CONFIG, kind="config_invalid")
        payload = deep_merge(payload, override)
    return apply_env_overrides(payload, env)


def load_configuration(path: Path | None = None, env: Mapping[str, str] | None = None) -> SdmConfiguration:
    payload = resolve_payload(path, env)
    errors = validate_configuration(payload)
    if errors:
        raise ScriptError("invalid configuration: " + "; ".join(errors), ERR_CONFIG, kind="config_invalid")
    return from_payload(payload)


def from_payload(payload: Mapping[str, Any]) -> SdmConfiguration:
    hub = payload["docker"]["hub"]
    smoke = payload.get("smoke_test", {})
    return SdmConfiguration(
        name=str(payload["name"]),
        version=__version__,
        environment=str(payload["environment"]),
        local_mode=bool(payload["local_mode"]),
        github_api_url=str(payload["github"]["api_url"]),
        github_token=payload["github"].get("token"),
        npm=NpmOptions(
            registry=str(payload["npm"]["registry"]),
            npmrc=payload["npm"].get("npmrc"),
            access=str(payload["npm"].get("access", "restricted")),
        ),
        docker=DockerOptions(registry=str(hub["registry"]), user=hub.get("user"), password=hub.get("password")),
        cache=CacheOptions(enabled=bool(payload["cache"]["enabled"]), path=str(payload["cache"]["path"])),
        image_pull_secret=str(payload["k8s"].get("image_pull_secret", "atomistjfrog")),
        deploy_enabled=tuple(str(x) for x in payload["deploy"].get("enabled", [])),
        smoke_test=SmokeTestTarget(
            team=str(smoke.get("team", "")),
            org=str(smoke.get("org", "")),
            port=int(smoke.get("port", 2867)),
            repo=str(smoke.get("repo", "atomist/sdm-smoke-test")),
        ),
        homebrew_tap_repo=str(payload.get("homebrew", {}).get("tap_repo", "homebrew-tap")),
        badge_url=str(payload.get("badge", {}).get("url", "http://badge.atomist.com")),
        approval_team=str(payload.get("approval", {}).get("github_team", "atomist-automation")),
        community_team=str(payload.get("policies", {}).get("community_team", "T095SFFBK")),
    )
