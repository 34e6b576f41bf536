"""
Default entry point for an agent worker process.

It accepts the launch parameters the supervisor passes, names the process after
the agent and stays resident until interrupted. Deployments point
AGENT_ENTRY_MODULE at their own agent program, which takes the same arguments.
"""
import sys
import time
import logging
import argparse
import setproctitle
from typing import List, Optional

from agentvisor.local.profiles import ProfileError, load_profile

log = logging.getLogger(__name__)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a single agent.")
    parser.add_argument("name", help="Agent name")
    parser.add_argument("-p", "--profile", required=True, help="Profile path")
    parser.add_argument("-c", "--count_id", type=int, default=0, help="Ordinal index of the agent")
    parser.add_argument("-l", "--load_memory", default="false", help="Load the previous memory")
    parser.add_argument("-m", "--init_message", help="Initial message for the agent")
    parser.add_argument("-t", "--task_path", help="Path to a task file")
    parser.add_argument("-i", "--task_id", help="Task ID")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    setproctitle.setproctitle(f"Agentvisor - Agent {args.name}")
    logging.basicConfig(
        level=logging.INFO,
        format=f'%(asctime)s - %(levelname)-8s - [agent {args.name}] - %(message)s',
        stream=sys.stdout
    )

    try:
        load_profile(args.profile)
    except ProfileError as e:
        log.error(str(e))
        return 1

    load_memory = str(args.load_memory).lower() in ('true', '1', 't')
    log.info(f"Agent #{args.count_id} online (load_memory={load_memory}, task={args.task_path}:{args.task_id}).")
    if args.init_message:
        log.info(f"Initial message: {args.init_message}")

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        log.info("Interrupted. Shutting down.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
