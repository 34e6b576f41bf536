import signal
import subprocess
import threading

import psutil
import pytest

from agentvisor.local import app_globals
from agentvisor.local.supervisor import AgentDescriptor, process_utils


@pytest.mark.parametrize("returncode, expected", [
    (0, (0, None)),
    (1, (1, None)),
    (3, (3, None)),
    (-signal.SIGINT, (None, "SIGINT")),
    (-signal.SIGTERM, (None, "SIGTERM")),
    (None, (None, None)),
])
def test_describe_exit(returncode, expected):
    assert process_utils.describe_exit(returncode) == expected


def test_agent_args_include_only_given_options():
    descriptor = AgentDescriptor(name="ann", profile="ann.json", index=2)

    args = process_utils.get_agent_args(descriptor, load_memory=False, init_message=None)

    assert args == [
        app_globals.PYTHON_EXECUTABLE, "-m", app_globals.AGENT_ENTRY_MODULE, "ann", "-p", "ann.json", "-c", "2",
    ]


def test_agent_args_with_every_option():
    descriptor = AgentDescriptor("ann", "ann.json", 2, task_path="t.json", task_id="9")

    args = process_utils.get_agent_args(descriptor, load_memory=True, init_message="hi")

    assert args[-8:] == ["-l", "true", "-m", "hi", "-t", "t.json", "-i", "9"]


def test_watch_process_reports_return_code_once():
    class Finished:
        pid = 1234

        def wait(self):
            return 5

    seen = []
    done = threading.Event()

    def on_exit(code):
        seen.append(code)
        done.set()

    watcher = process_utils.watch_process(Finished(), on_exit, "ann")
    watcher.join(timeout=5)

    assert done.is_set()
    assert seen == [5]
    assert watcher.daemon is True


def test_send_interrupt_uses_sigint(monkeypatch):
    sent = []

    class FakePsProcess:
        def send_signal(self, sig):
            sent.append(sig)

    monkeypatch.setattr(process_utils, "get_process_from_pid", lambda pid: FakePsProcess())

    class Running:
        pid = 99

    process_utils.send_interrupt(Running())
    assert sent == [signal.SIGINT]


def test_get_status_of_vanished_process(monkeypatch):
    def gone(pid):
        raise psutil.NoSuchProcess(pid)

    monkeypatch.setattr(process_utils, "get_process_from_pid", gone)

    class Vanished:
        pid = 77

    assert process_utils.get_status(Vanished()) == {"pid": 77, "status": "EXITED"}
    assert process_utils.get_status(None) == {}


def test_wait_for_exit_reports_timeout():
    class Lingering:
        def wait(self, timeout=None):
            raise subprocess.TimeoutExpired("agent", timeout)

    class Finished:
        def wait(self, timeout=None):
            return 0

    assert process_utils.wait_for_exit(Lingering(), 0.1) is False
    assert process_utils.wait_for_exit(Finished(), 0.1) is True
