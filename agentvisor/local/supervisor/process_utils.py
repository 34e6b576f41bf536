import os
import sys
import signal
import psutil
import logging
import threading
import subprocess
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple

from agentvisor.local import app_globals

if TYPE_CHECKING:
    from .supervisor import AgentDescriptor

log = logging.getLogger(__name__)


#* --- Process Status & Monitoring ---
def get_process_from_pid(pid: int) -> psutil.Process:
    """A wrapper for psutil.Process for easy testing/mocking if needed."""
    return psutil.Process(pid)

def describe_exit(returncode: int) -> Tuple[Optional[int], Optional[str]]:
    """
    Splits a Popen return code into an exit code and a terminating signal name.
    A negative return code means the child was killed by that signal.
    """
    if returncode is None:
        return None, None
    if returncode < 0:
        try:
            return None, signal.Signals(-returncode).name
        except ValueError:
            return None, f"SIG{-returncode}"
    return returncode, None

def watch_process(process: subprocess.Popen, on_exit: Callable[[int], None], name: str) -> threading.Thread:
    """
    Starts a daemon thread that waits for the process and reports its return code once.

    :param process: The spawned worker.
    :param on_exit: Called with the return code after the process has terminated.
    :param name: The agent name, used for the thread name.
    """
    def _wait() -> None:
        returncode = process.wait()
        on_exit(returncode)

    watcher = threading.Thread(target=_wait, daemon=True, name=f"AgentWatcher-{name}-{process.pid}")
    watcher.start()
    return watcher

def get_status(process: Optional[subprocess.Popen]) -> dict:
    """Returns pid, cpu and memory figures for a live worker, or an empty dict."""
    if process is None:
        return {}
    try:
        p = get_process_from_pid(process.pid)
        return {
            "pid": process.pid,
            "status": p.status().upper(),
            "cpu": p.cpu_percent(interval=0.1),
            "memory": p.memory_info().rss,
        }
    except psutil.NoSuchProcess:
        return {"pid": process.pid, "status": "EXITED"}
    except psutil.AccessDenied:
        return {"pid": process.pid, "status": "RUNNING (Access Denied)"}

#* --- Process Control ---
def wait_for_exit(process: subprocess.Popen, timeout: float) -> bool:
    """
    Waits for a worker to terminate.

    :return: False if it was still alive after the timeout.
    """
    try:
        process.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        return False
    return True

def send_interrupt(process: subprocess.Popen) -> None:
    """
    Delivers the interactive interrupt signal to a worker.

    :raises psutil.Error: If the process is gone or cannot be signalled.
    """
    get_process_from_pid(process.pid).send_signal(signal.SIGINT)

def terminate_program(exit_code: int) -> None:
    """
    Ends the whole supervisor with the given exit code from any thread.
    Logging is flushed first because os._exit skips interpreter cleanup.
    """
    log.critical(f"Terminating supervisor with exit code {exit_code}.")
    logging.shutdown()
    sys.stdout.flush()
    os._exit(exit_code)

#* --- Process Creation ---
def get_agent_args(descriptor: "AgentDescriptor", load_memory: bool, init_message: Optional[str]) -> List[str]:
    """
    Builds the worker command line for an agent.

    :param descriptor: The agent's launch parameters.
    :param load_memory: Whether the worker should reload its previous memory.
    :param init_message: First message handed to the worker, if any.
    :return list: The argument vector for Popen.
    """
    args = [app_globals.PYTHON_EXECUTABLE, "-m", app_globals.AGENT_ENTRY_MODULE, descriptor.name]
    args += ["-p", str(descriptor.profile)]
    args += ["-c", str(descriptor.index)]
    if load_memory:
        args += ["-l", "true"]
    if init_message:
        args += ["-m", init_message]
    if descriptor.task_path:
        args += ["-t", str(descriptor.task_path)]
    if descriptor.task_id:
        args += ["-i", str(descriptor.task_id)]
    return args

def spawn_agent(args: List[str]) -> subprocess.Popen:
    """
    Launches a worker that shares the supervisor's terminal.

    :raises OSError: If the executable cannot be started.
    """
    log.debug(f"Spawning: {' '.join(args)}")
    return subprocess.Popen(args, cwd=str(app_globals.BASE_DIR))
