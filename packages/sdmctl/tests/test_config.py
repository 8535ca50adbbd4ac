from __future__ import annotations

from pathlib import Path

import pytest

from sdmctl import __version__
from sdmctl.config.loader import (
    apply_env_overrides,
    deep_merge,
    load_configuration,
    resolve_payload,
    validate_configuration,
)
from sdmctl.errors import ScriptError
from sdmctl.exit_codes import ERR_CONFIG


def test_defaults_load_without_environment() -> None:
    cfg = load_configuration(env={})
    assert cfg.name == "atomist-sdm"
    assert cfg.version == __version__
    assert cfg.environment == "production_local"
    assert cfg.local_mode is False
    assert cfg.github_token is None
    assert cfg.npm.registry == "https://registry.npmjs.org"
    assert cfg.docker.registry == "atomist"
    assert cfg.cache.enabled is False
    assert cfg.image_pull_secret == "atomistjfrog"
    assert cfg.deploy_enabled == ()
    assert cfg.smoke_test.org == "sample-sdm-fidelity"
    assert cfg.smoke_test.port == 2867
    assert cfg.homebrew_tap_repo == "homebrew-tap"
    assert cfg.approval_team == "atomist-automation"
    assert cfg.community_team == "T095SFFBK"
    assert cfg.footer == f"atomist-sdm:{__version__}"


def test_environment_overrides_apply() -> None:
    cfg = load_configuration(
        env={
            "GITHUB_TOKEN": "ghp_123",
            "DOCKER_REGISTRY": "registry.example.com/atomist",
            "SDM_LOCAL_MODE": "yes",
            "SDM_ENVIRONMENT": "testing_local",
            "NPM_REGISTRY": "",
        }
    )
    assert cfg.github_token == "ghp_123"
    assert cfg.docker.registry == "registry.example.com/atomist"
    assert cfg.local_mode is True
    assert cfg.environment == "testing_local"
    assert cfg.npm.registry == "https://registry.npmjs.org"


@pytest.mark.parametrize(("raw", "expected"), [("1", True), ("TRUE", True), ("on", True), ("0", False), ("no", False)])
def test_local_mode_override_parses_booleans(raw: str, expected: bool) -> None:
    assert apply_env_overrides({"local_mode": False}, {"SDM_LOCAL_MODE": raw})["local_mode"] is expected


def test_override_file_is_deep_merged(tmp_path: Path) -> None:
    override = tmp_path / "sdm.yaml"
    override.write_text("deploy:\n  enabled: [atomist/card-automation]\ndocker:\n  hub:\n    user: bot\n", encoding="utf-8")
    cfg = load_configuration(override, env={})
    assert cfg.deploy_enabled == ("atomist/card-automation",)
    assert cfg.docker.user == "bot"
    assert cfg.docker.registry == "atomist"


def test_override_file_from_environment(tmp_path: Path) -> None:
    override = tmp_path / "sdm.yaml"
    override.write_text("name: other-sdm\n", encoding="utf-8")
    assert load_configuration(env={"SDMCTL_CONFIG": str(override)}).name == "other-sdm"


def test_missing_override_file_is_a_config_error(tmp_path: Path) -> None:
    with pytest.raises(ScriptError) as exc:
        resolve_payload(tmp_path / "nope.yaml", env={})
    assert exc.value.code == ERR_CONFIG
    assert exc.value.kind == "config_missing"


def test_invalid_configuration_is_rejected(tmp_path: Path) -> None:
    override = tmp_path / "sdm.yaml"
    override.write_text("local_mode: sometimes\nunknown_key: 1\n", encoding="utf-8")
    with pytest.raises(ScriptError) as exc:
        load_configuration(override, env={})
    assert exc.value.kind == "config_invalid"
    errors = validate_configuration(resolve_payload(override, env={}))
    assert any(e.startswith("local_mode:") for e in errors)
    assert any("unknown_key" in e for e in errors)


def test_non_mapping_override_is_rejected(tmp_path: Path) -> None:
    override = tmp_path / "sdm.yaml"
    override.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ScriptError) as exc:
        load_configuration(override, env={})
    assert exc.value.kind == "config_invalid"


def test_deep_merge_does_not_mutate_inputs() -> None:
    base = {"a": {"b": 1, "c": 2}}
    merged = deep_merge(base, {"a": {"c": 3}})
    assert merged == {"a": {"b": 1, "c": 3}}
    assert base == {"a": {"b": 1, "c": 2}}


def test_payload_redacts_secrets_by_default() -> None:
    cfg = load_configuration(env={"GITHUB_TOKEN": "ghp_123", "DOCKER_PASSWORD": "pw"})
    payload = cfg.to_payload()
    assert payload["github"]["token"] == "***"
    assert payload["docker"]["hub"]["password"] == "***"
    assert cfg.to_payload(redact=False)["github"]["token"] == "ghp_123"
    assert payload["npm"]["npmrc"] is None
