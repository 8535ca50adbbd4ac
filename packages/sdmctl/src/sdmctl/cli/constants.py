"""CLI constants and registration tables."""

from __future__ import annotations

CONFIGURE_HOOKS: tuple[tuple[str, str], ...] = (
    ("sdmctl.config.command", "configure_config_parser"),
    ("sdmctl.machine.command", "configure_plan_parser"),
    ("sdmctl.machine.command", "configure_goal_parser"),
    ("sdmctl.autofix.command", "configure_autofix_parser"),
    ("sdmctl.autofix.command", "configure_header_parser"),
    ("sdmctl.autofix.command", "configure_dockerfile_parser"),
    ("sdmctl.inspection.command", "configure_inspect_parser"),
    ("sdmctl.machine.command", "configure_k8s_parser"),
    ("sdmctl.machine.command", "configure_release_parser"),
    ("sdmctl.command.runtime", "configure_tag_parser"),
    ("sdmctl.command.runtime", "configure_approval_parsers"),
    ("sdmctl.command.runtime", "configure_du_parser"),
    ("sdmctl.command.runtime", "configure_badge_parser"),
    ("sdmctl.transform.command", "configure_transform_parser"),
)

COMMAND_RUNNERS: dict[str, tuple[str, str]] = {
    "config": ("sdmctl.config.command", "run_config_command"),
    "plan": ("sdmctl.machine.command", "run_plan_command"),
    "goal": ("sdmctl.machine.command", "run_goal_command"),
    "autofix": ("sdmctl.autofix.command", "run_autofix_command"),
    "header": ("sdmctl.autofix.command", "run_header_command"),
    "dockerfile": ("sdmctl.autofix.command", "run_dockerfile_command"),
    "inspect": ("sdmctl.inspection.command", "run_inspect_command"),
    "k8s": ("sdmctl.machine.command", "run_k8s_command"),
    "release": ("sdmctl.machine.command", "run_release_command"),
    "tag": ("sdmctl.command.runtime", "run_tag_command"),
    "approve": ("sdmctl.command.runtime", "run_approval_command"),
    "cancel-approval": ("sdmctl.command.runtime", "run_approval_command"),
    "du": ("sdmctl.command.runtime", "run_du_command"),
    "badge": ("sdmctl.command.runtime", "run_badge_command"),
    "transform": ("sdmctl.transform.command", "run_transform_command"),
}
