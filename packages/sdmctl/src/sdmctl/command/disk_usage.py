from __future__ import annotations

from pathlib import Path
from typing import Any

from ..core.process import run_command
from ..sdm.progress_log import StringCapturingProgressLog
from ..sdm.registrations import CommandHandlerRegistration, CommandListenerInvocation
from ..sdm.slack import code_block


def disk_usage(ci: CommandListenerInvocation[Any]) -> int:
    log = StringCapturingProgressLog()
    result = run_command(["du", "-sha", "-d", "1"], cwd=Path("/"), log=log, ctx=ci.ctx)
    ci.messages.respond(code_block(log.log.strip()))
    return result.code


DISK_USAGE_COMMAND = CommandHandlerRegistration(
    name="DiskUsageCommandRegistration",
    listener=disk_usage,
    description="Report disk usage of the machine the SDM runs on",
    intent=("show disk usage",),
)
