import logging

import pytest

from agentvisor.local import app_globals
from agentvisor.local.console import BUILTIN_COMMANDS, CommandContext, DispatchOutcome, build_registry, dispatch
from agentvisor.local.fleet import FleetRegistry
from agentvisor.local.supervisor import AgentDescriptor, AgentProcess


@pytest.fixture
def fleet(spawner, proxy, clock):
    fleet = FleetRegistry()
    for index, name in enumerate(("alice", "bob")):
        agent = AgentProcess(AgentDescriptor(name, f"{name}.json", index), proxy=proxy, clock=clock)
        fleet.add(agent)
        agent.start()
    return fleet


@pytest.fixture
def run(fleet, proxy):
    registry = build_registry(BUILTIN_COMMANDS)
    context = CommandContext(fleet=fleet, commands=registry, main_proxy=proxy, settings=app_globals)

    def _run(line):
        return dispatch(line, registry, context)
    return _run


def test_list_shows_every_agent(run, fleet, capsys):
    fleet.get("bob").stop()

    assert run("!list") is DispatchOutcome.OK
    out = capsys.readouterr().out
    assert "alice" in out and "running" in out
    assert "bob" in out and "stopped" in out


def test_stop_and_resume_by_name(run, fleet, spawner, capsys):
    run("!stop alice")
    assert fleet.get("alice").running is False
    assert "Stopped agent 'alice'" in capsys.readouterr().out

    run("!continue alice")
    assert fleet.get("alice").running is True
    assert len(spawner.spawned) == 3


def test_stop_unknown_agent_prints_error(run, spawner, capsys):
    assert run("!stop carol") is DispatchOutcome.OK
    assert "No agent named 'carol'" in capsys.readouterr().out
    assert spawner.interrupted == []


def test_stop_without_name_prints_usage(run, capsys):
    run("!stop")
    assert "Usage: !stop <agent_name>" in capsys.readouterr().out


def test_restart_spawns_a_new_worker(run, fleet, spawner):
    old_process = fleet.get("bob").process

    run("!restart bob")

    assert old_process in spawner.interrupted
    assert fleet.get("bob").process is spawner.spawned[-1]
    assert fleet.get("bob").running is True


def test_restart_leaves_agent_stopped_while_old_worker_lives(run, fleet, spawner, capsys):
    spawner.exit_on_interrupt = False

    run("!restart bob")

    bob_workers = [p for p in spawner.spawned if p.args[3] == "bob"]
    assert len(bob_workers) == 1
    assert fleet.get("bob").running is False
    assert "Failed to restart agent 'bob'" in capsys.readouterr().out


def test_message_is_relayed(run, capsys, caplog):
    with caplog.at_level(logging.INFO):
        assert run("!msg alice hello there") is DispatchOutcome.OK
    assert "Message sent to 'alice'" in capsys.readouterr().out
    assert "hello there" in caplog.text


def test_message_without_text_prints_usage(run, capsys):
    run("!say alice")
    assert "Usage: !message" in capsys.readouterr().out


def test_stopall_stops_running_agents(run, fleet, capsys):
    run("!stopall")
    assert not any(agent.running for _, agent in fleet.items())
    assert "Stopped 2 agent(s)" in capsys.readouterr().out


def test_status_shows_resource_usage(run, fleet, capsys):
    fleet.get("bob").stop()

    run("!status")

    out = capsys.readouterr().out
    assert "alice" in out and "CPU: 1.5%" in out and "MEM: 2.0 MB" in out
    assert "bob" in out and "STOPPED" in out


def test_config_lists_settings(run, capsys):
    run("!config")
    assert "RESTART_GUARD_SECONDS = 10.0" in capsys.readouterr().out


def test_exit_stops_fleet(run, fleet):
    with pytest.raises(SystemExit) as excinfo:
        run("!exit")
    assert excinfo.value.code == 0
    assert fleet.names() == ["alice", "bob"]
    assert not any(agent.running for _, agent in fleet.items())
