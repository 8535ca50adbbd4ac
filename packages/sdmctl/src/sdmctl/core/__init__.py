"""sdmctl core package."""
from .context import RunContext
from .logging import log_event
from .process import CommandResult, run_command
from .serialize import dumps_json

__all__ = [
    "CommandResult",
    "RunContext",
    "dumps_json",
    "log_event",
    "run_command",
]
