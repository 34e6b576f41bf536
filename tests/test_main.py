import pytest

import agentvisor.main as main_module
from agentvisor.local import app_globals


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(main_module, "setup_logging", lambda *args, **kwargs: None)


def scripted_input(*lines):
    pending = list(lines)

    def _read(prompt):
        if not pending:
            raise EOFError
        return pending.pop(0)
    return _read


def test_list_then_exit_end_to_end(write_profile, spawner, proxy, no_start_delay, capsys):
    a = write_profile("a.json", {"name": "A"})
    b = write_profile("b.json", {"name": "B"})

    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["--profiles", a, b], proxy=proxy, read_line=scripted_input("!list", "!exit"))

    assert excinfo.value.code == 0
    out = capsys.readouterr().out
    assert "Available commands:" in out
    assert "Agents (2):" in out
    assert "  - A " in out and "  - B " in out
    assert proxy.connected is True
    assert proxy.events == [("register", "A"), ("register", "B")]
    assert len(spawner.interrupted) == 2


def test_closed_input_exits_cleanly(write_profile, spawner, proxy, no_start_delay, capsys):
    a = write_profile("a.json", {"name": "A"})

    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["--profiles", a], proxy=proxy, read_line=scripted_input("chatter", "!nope"))

    assert excinfo.value.code == 0
    out = capsys.readouterr().out
    assert "Unknown command" in out
    assert "CLI closed." in out


def test_no_profiles_returns_one(monkeypatch, proxy):
    monkeypatch.setattr(app_globals, "AGENT_PROFILES", [])

    assert main_module.main([], proxy=proxy, read_line=scripted_input()) == 1


def test_profiles_fall_back_to_settings(monkeypatch):
    monkeypatch.setattr(app_globals, "AGENT_PROFILES", ["x.json", "y.json"])

    assert main_module.get_profiles(main_module.parse_arguments([])) == ["x.json", "y.json"]
    assert main_module.get_profiles(main_module.parse_arguments(["--profiles", "z.json"])) == ["z.json"]


def test_run_maps_unexpected_errors_to_exit_one(monkeypatch):
    def broken_main():
        raise RuntimeError("kaput")

    monkeypatch.setattr(main_module, "main", broken_main)

    with pytest.raises(SystemExit) as excinfo:
        main_module.run()
    assert excinfo.value.code == 1
