import sys
import logging
import argparse
import threading
from typing import Callable, List, Mapping, Optional

# Basic console logger for messages BEFORE full setup is complete.
# This logger will be replaced by the full setup later.
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)-8s - [console] - %(message)s',
    stream=sys.stdout
)
log = logging.getLogger("console")

from agentvisor.local import app_globals
from agentvisor.log import setup_logging
from agentvisor.local.main_proxy import MainProxy, main_proxy
from agentvisor.local.supervisor.startup import start_fleet
from agentvisor.local.console import (
    BUILTIN_COMMANDS, CommandContext, CommandEntry, build_registry, dispatch,
)

CONSOLE_LOCK = threading.Lock()


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="agentvisor", description="Launch and supervise agent processes.")
    parser.add_argument("--profiles", nargs="+", help="List of agent profile paths")
    parser.add_argument("--task_path", help="Path to task file to execute")
    parser.add_argument("--task_id", help="Task ID to execute")
    parser.add_argument("--verbose", action="store_true", help="Show DEBUG output on the console")
    return parser.parse_args(argv)


def get_profiles(args: argparse.Namespace) -> List[str]:
    return list(args.profiles or app_globals.AGENT_PROFILES or [])


def run_console(
    registry: Mapping[str, CommandEntry],
    context: CommandContext,
    read_line: Callable[[str], str] = input,
) -> None:
    """
    Reads operator lines until an exit command or the end of input.

    Exits the program with code 0 when input closes or the operator presses Ctrl-C.
    """
    while True:
        try:
            # The input prompt must be outside the lock to not block background threads
            line = read_line(app_globals.CONSOLE_PROMPT)
            with CONSOLE_LOCK:
                dispatch(line, registry, context)
        except EOFError:
            print("CLI closed.")
            sys.exit(0)
        except KeyboardInterrupt:
            log.warning("\nExiting console due to KeyboardInterrupt.")
            sys.exit(0)


def main(argv: Optional[List[str]] = None, proxy: MainProxy = None, read_line: Callable[[str], str] = input) -> int:
    """
    The main entry point: starts the fleet and hands control to the console.

    :return: 1 when no profiles are given; otherwise the console ends the process.
    """
    args = parse_arguments(argv)
    if args.verbose:
        app_globals.VERBOSE_LOGGING = True
    setup_logging(logging.DEBUG if app_globals.VERBOSE_LOGGING else logging.INFO)

    proxy = proxy if proxy is not None else main_proxy
    proxy.connect()

    profiles = get_profiles(args)
    if not profiles:
        log.error("No agent profiles specified. Use --profiles or set AGENT_PROFILES.")
        return 1

    log.info(f"Loading agent profiles: {profiles}")
    fleet = start_fleet(profiles, proxy, task_path=args.task_path, task_id=args.task_id)

    commands = build_registry(BUILTIN_COMMANDS)
    context = CommandContext(fleet=fleet, commands=commands, main_proxy=proxy, settings=app_globals)

    # Auto-print help on start
    commands["help"].handler(context)
    run_console(commands, context, read_line)
    return 0


def run() -> None:
    """Console-script wrapper with top-level error trapping."""
    try:
        sys.exit(main())
    except Exception as e:
        log.critical(f"An error occurred: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run()
