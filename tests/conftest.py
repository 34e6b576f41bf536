import json
import signal
import itertools
from typing import Callable, Dict, List, Tuple

import pytest

from agentvisor.local import app_globals
from agentvisor.local.supervisor import AgentDescriptor, AgentProcess, process_utils

_pids = itertools.count(4000)


class FakeProcess:
    """Stands in for subprocess.Popen; never touches the OS."""

    def __init__(self, args: List[str]) -> None:
        self.args = args
        self.pid = next(_pids)
        self.returncode = None

    def wait(self) -> int:
        return self.returncode


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProxy:
    def __init__(self) -> None:
        self.events: List[Tuple[str, str]] = []
        self.connected = False

    def connect(self) -> None:
        self.connected = True

    def register_agent(self, name: str, agent: AgentProcess) -> None:
        self.events.append(("register", name))

    def logout_agent(self, name: str) -> None:
        self.events.append(("logout", name))


class FakeSpawner:
    """Records every spawn, watcher, interrupt and program termination."""

    def __init__(self) -> None:
        self.spawned: List[FakeProcess] = []
        self.watchers: List[Tuple[FakeProcess, Callable[[int], None]]] = []
        self.interrupted: List[FakeProcess] = []
        self.terminated: List[int] = []
        self.spawn_error: Exception = None
        self.interrupt_error: Exception = None
        self.exit_on_interrupt = True
        self.waited: List[Tuple[FakeProcess, float]] = []

    def spawn_agent(self, args: List[str]) -> FakeProcess:
        if self.spawn_error is not None:
            raise self.spawn_error
        process = FakeProcess(args)
        self.spawned.append(process)
        return process

    def watch_process(self, process: FakeProcess, on_exit: Callable[[int], None], name: str) -> None:
        self.watchers.append((process, on_exit))

    def send_interrupt(self, process: FakeProcess) -> None:
        if self.interrupt_error is not None:
            raise self.interrupt_error
        self.interrupted.append(process)
        if self.exit_on_interrupt:
            process.returncode = -signal.SIGINT

    def wait_for_exit(self, process: FakeProcess, timeout: float) -> bool:
        self.waited.append((process, timeout))
        return process.returncode is not None

    def terminate_program(self, exit_code: int) -> None:
        self.terminated.append(exit_code)

    def exit_last(self, returncode: int) -> None:
        """Reports the most recent worker as terminated."""
        self.watchers[-1][1](returncode)

    def get_status(self, process: FakeProcess) -> Dict:
        if process is None:
            return {}
        return {"pid": process.pid, "status": "RUNNING", "cpu": 1.5, "memory": 2 * 1024 * 1024}


@pytest.fixture
def spawner(monkeypatch) -> FakeSpawner:
    fake = FakeSpawner()
    for name in ("spawn_agent", "watch_process", "send_interrupt", "terminate_program", "get_status", "wait_for_exit"):
        monkeypatch.setattr(process_utils, name, getattr(fake, name))
    return fake


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def proxy() -> FakeProxy:
    return FakeProxy()


@pytest.fixture
def descriptor() -> AgentDescriptor:
    return AgentDescriptor(name="alice", profile="profiles/alice.json", index=0)


@pytest.fixture
def agent(descriptor, proxy, clock, spawner) -> AgentProcess:
    return AgentProcess(descriptor, proxy=proxy, clock=clock)


@pytest.fixture
def no_start_delay(monkeypatch) -> None:
    monkeypatch.setattr(app_globals, "AGENT_START_DELAY", 0)


@pytest.fixture
def write_profile(tmp_path) -> Callable[..., str]:
    def _write(filename: str, content) -> str:
        path = tmp_path / filename
        if isinstance(content, str):
            path.write_text(content, encoding="utf-8")
        else:
            path.write_text(json.dumps(content), encoding="utf-8")
        return str(path)
    return _write
