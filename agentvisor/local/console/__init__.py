"""
This module initializes the console package, exposing the command registry,
the line dispatcher and the default command set.
"""

from .registry import CommandEntry, build_registry, resolve
from .process import CommandContext, DispatchOutcome, dispatch, parse_line
from .handler import BUILTIN_COMMANDS, CONSOLE_COMMANDS

__all__ = [
    "CommandEntry", "build_registry", "resolve",
    "CommandContext", "DispatchOutcome", "dispatch", "parse_line",
    "BUILTIN_COMMANDS", "CONSOLE_COMMANDS",
]
