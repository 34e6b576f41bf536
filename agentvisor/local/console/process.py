import enum
import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Mapping, NamedTuple, Optional

from agentvisor.local import app_globals
from agentvisor.local.console.registry import CommandEntry, resolve

if TYPE_CHECKING:
    from agentvisor.local.fleet import FleetRegistry
    from agentvisor.local.main_proxy import MainProxy

log = logging.getLogger(__name__)


class ParsedCommand(NamedTuple):
    token: str
    args: List[str]


class DispatchOutcome(enum.Enum):
    NOOP = "noop"
    UNKNOWN = "unknown"
    OK = "ok"
    FAILED = "failed"


@dataclass
class CommandContext:
    """Everything a command handler may touch."""
    fleet: "FleetRegistry"
    commands: Mapping[str, CommandEntry] = field(default_factory=dict)
    main_proxy: Optional["MainProxy"] = None
    settings: Any = None


def parse_line(line: str, prefix: str = None) -> Optional[ParsedCommand]:
    """
    Splits a console line into a command token and its arguments.

    :param line: The raw input line.
    :param prefix: The character that marks a command. Defaults to COMMAND_PREFIX.
    :return: The parsed command, or None if the line is not a command.
    """
    prefix = app_globals.COMMAND_PREFIX if prefix is None else prefix
    trimmed = line.strip()
    if not trimmed.startswith(prefix):
        return None
    parts = trimmed[len(prefix):].split()
    if not parts:
        return ParsedCommand("", [])
    return ParsedCommand(parts[0], parts[1:])


def dispatch(line: str, registry: Mapping[str, CommandEntry], context: CommandContext, prefix: str = None) -> DispatchOutcome:
    """
    Executes a single console line.

    Handler failures are logged and reported as FAILED; they never reach the caller.
    SystemExit raised by a handler is not caught.

    :param line: The raw input line.
    :param registry: The command table built for this session.
    :param context: Passed to the handler as its first argument.
    :return DispatchOutcome: What happened to the line.
    """
    prefix = app_globals.COMMAND_PREFIX if prefix is None else prefix
    parsed = parse_line(line, prefix)
    if parsed is None:
        return DispatchOutcome.NOOP

    command_name = resolve(parsed.token, registry)
    if command_name is None:
        print(f"Unknown command, type {prefix}help for options.")
        log.debug(f"Unknown command: '{parsed.token}'")
        return DispatchOutcome.UNKNOWN

    log.debug(f"Executing command: {command_name}, args: {parsed.args}")
    try:
        result = registry[command_name].handler(context, *parsed.args)
        if inspect.isawaitable(result):
            asyncio.run(_await(result))
    except Exception as e:
        log.error(f"Command error in '{command_name}': {e}", exc_info=True)
        return DispatchOutcome.FAILED
    return DispatchOutcome.OK


async def _await(awaitable: Any) -> Any:
    return await awaitable
