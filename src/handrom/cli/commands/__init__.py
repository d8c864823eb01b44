"""CLI command handlers."""

from handrom.cli.commands.analyze import run_analyze
from handrom.cli.commands.info import run_info

__all__ = [
    "run_analyze",
    "run_info",
]
