import time
import psutil
import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from agentvisor.local import app_globals
from agentvisor.local.main_proxy import main_proxy
from agentvisor.local.supervisor import process_utils

if TYPE_CHECKING:
    import subprocess
    from agentvisor.local.main_proxy import MainProxy

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentDescriptor:
    """Static launch parameters for one agent."""
    name: str
    profile: str
    index: int = 0
    load_memory: bool = False
    init_message: Optional[str] = None
    task_path: Optional[str] = None
    task_id: Optional[str] = None


class AgentProcess:
    """
    Owns the lifecycle of one named agent worker.

    The worker is spawned as a child process and watched from a daemon thread.
    When it dies abnormally it is started again, unless it died within the
    restart guard window of its own spawn, in which case supervision is given up
    until an operator resumes it. A worker exit code above 1 ends the whole program.
    """

    def __init__(
        self,
        descriptor: AgentDescriptor,
        proxy: "MainProxy" = None,
        clock: Callable[[], float] = time.monotonic,
        restart_guard: float = None,
    ) -> None:
        self.descriptor = descriptor
        self.proxy = proxy if proxy is not None else main_proxy
        self.restart_guard = restart_guard if restart_guard is not None else app_globals.RESTART_GUARD_SECONDS
        self._clock = clock
        # Console commands and exit watchers both reach this state.
        self._lock = threading.RLock()

        self.running = False
        self.process: Optional["subprocess.Popen"] = None
        self.last_restart: Optional[float] = None
        self.last_error: Optional[str] = None
        self._spawn_id = 0
        self._stop_requested = False
        self._stopped_process: Optional["subprocess.Popen"] = None
        self.log = logging.LoggerAdapter(log, {"agent": descriptor.name})

    @property
    def name(self) -> str:
        return self.descriptor.name

    def start(self, is_resuming: bool = False, announce_message: Optional[str] = None) -> bool:
        """
        Spawns the worker and begins watching it.

        :param is_resuming: Ask the worker to reload its previous memory.
        :param announce_message: Replaces the descriptor's initial message when given.
        :return: True if a worker was spawned.
        """
        with self._lock:
            if self.running:
                self.log.warning(f"Agent '{self.name}' is already running. Ignoring start request.")
                return False

            load_memory = is_resuming or self.descriptor.load_memory
            init_message = announce_message if announce_message is not None else self.descriptor.init_message
            args = process_utils.get_agent_args(self.descriptor, load_memory, init_message)
            try:
                process = process_utils.spawn_agent(args)
            except OSError as e:
                self._on_error(e)
                return False

            self._spawn_id += 1
            spawn_id = self._spawn_id
            self.process = process
            self.running = True
            self._stop_requested = False
            self.last_restart = self._clock()
            self.last_error = None
            process_utils.watch_process(process, lambda returncode: self._on_exit(spawn_id, returncode), self.name)

        self.log.info(f"Agent process ({self.name}) started with PID: {process.pid}")
        return True

    def _on_error(self, error: Exception) -> None:
        """Spawn failures are reported only; they never trigger a restart."""
        self.last_error = f"spawn failed: {error}"
        self.log.error(f"Agent process ({self.name}) error: {error}")

    def _on_exit(self, spawn_id: int, returncode: int) -> None:
        exit_code, signal_name = process_utils.describe_exit(returncode)
        self.log.info(f"Agent process ({self.name}) exited with code {exit_code} and signal {signal_name}")

        with self._lock:
            superseded = spawn_id != self._spawn_id
            if not superseded:
                self.running = False
                self.process = None
            stop_requested = self._stop_requested

        if not superseded:
            self.proxy.logout_agent(self.name)

        if exit_code is not None and exit_code > 1:
            self.log.critical(f"Agent '{self.name}' failed with exit code {exit_code}. Ending task.")
            process_utils.terminate_program(exit_code)
            return

        if superseded:
            self.log.debug(f"Exit belongs to a superseded worker of '{self.name}'. Ignoring.")
            return

        if exit_code == 0 or signal_name == app_globals.INTERRUPT_SIGNAL_NAME or stop_requested:
            return

        self._restart()

    def _restart(self) -> bool:
        with self._lock:
            if self.running:
                # An operator resumed the agent first.
                return False
            elapsed = self._clock() - self.last_restart
            if elapsed < self.restart_guard:
                self.last_error = f"exited {elapsed:.1f}s after start; restart abandoned"
                self.log.error(
                    f"Agent process {self.descriptor.profile} exited too quickly and will not be restarted."
                )
                return False

        self.log.info(f"Restarting agent '{self.name}'...")
        return self.start(is_resuming=True, announce_message=app_globals.RESTART_ANNOUNCEMENT)

    def stop(self) -> bool:
        """
        Interrupts the worker. Delivery errors are logged and the agent is
        marked stopped regardless.

        :return: True if the agent was running.
        """
        with self._lock:
            if not self.running or self.process is None:
                return False
            self._stop_requested = True
            self._stopped_process = self.process
            try:
                process_utils.send_interrupt(self.process)
            except (psutil.Error, OSError) as e:
                self.last_error = f"stop failed: {e}"
                self.log.error(f"Error stopping agent process ({self.name}): {e}")
            self.running = False
            self.process = None

        self.log.info(f"Agent '{self.name}' stopped.")
        return True

    def resume(self) -> bool:
        """Starts a stopped agent again. Unlike automatic restarts, this is never rate-limited."""
        with self._lock:
            if self.running:
                return False
        self.log.info(f"Resuming agent '{self.name}'.")
        return self.start(is_resuming=True, announce_message=app_globals.RESTART_ANNOUNCEMENT)

    def restart(self, timeout: float = None) -> bool:
        """
        Stops the agent, waits for its worker to exit and resumes it.
        Nothing is spawned while the previous worker is still alive.

        :param timeout: Seconds to wait for the old worker. Defaults to STOP_WAIT_SECONDS.
        :return: True if a new worker was spawned.
        """
        timeout = app_globals.STOP_WAIT_SECONDS if timeout is None else timeout
        self.stop()
        with self._lock:
            previous = self._stopped_process
        if previous is not None and not process_utils.wait_for_exit(previous, timeout):
            self.last_error = f"previous worker (PID {previous.pid}) still running after {timeout}s"
            self.log.error(f"Agent '{self.name}' did not exit within {timeout}s. Not restarting.")
            return False
        with self._lock:
            self._stopped_process = None
        return self.resume()

    async def relay_message(self, message: str) -> None:
        # Delivery to observers is owned by the agent program; only the hand-off is recorded.
        self.log.info(f"Sending message from '{self.name}': {message}")

    def status(self) -> Dict[str, Any]:
        with self._lock:
            info: Dict[str, Any] = {
                "name": self.name,
                "running": self.running,
                "uptime": self._clock() - self.last_restart if self.running else None,
                "last_error": self.last_error,
            }
            process = self.process
        info.update(process_utils.get_status(process))
        return info
