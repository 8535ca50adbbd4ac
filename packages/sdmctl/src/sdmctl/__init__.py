__version__ = "0.1.0"

__all__ = [
    "__version__",
    "autofix",
    "cli",
    "command",
    "config",
    "core",
    "event",
    "inspection",
    "machine",
    "sdm",
    "support",
    "transform",
]
