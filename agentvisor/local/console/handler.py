import sys
import logging
from typing import TYPE_CHECKING, Optional

from agentvisor.log import toggle_verbose_logging
from agentvisor.local.console.registry import CommandEntry

if TYPE_CHECKING:
    from agentvisor.local.console.process import CommandContext
    from agentvisor.local.supervisor import AgentProcess

log = logging.getLogger(__name__)


def _find_agent(context: "CommandContext", name: Optional[str], usage: str) -> Optional["AgentProcess"]:
    """Looks up an agent by name, printing usage or an error when it cannot."""
    if not name:
        print(f"Usage: {usage}")
        return None
    agent = context.fleet.get(name)
    if agent is None:
        print(f"No agent named '{name}'. Known agents: {', '.join(context.fleet.names()) or 'none'}")
    return agent


#* --- Console-only commands ---
def print_help(context: "CommandContext", *args: str) -> None:
    """Lists every registered command with its aliases."""
    lines = []
    for name, entry in context.commands.items():
        alias_str = f" (aliases: {', '.join(entry.aliases)})" if entry.aliases else ""
        lines.append(f"  {name:<16}{entry.description}{alias_str}")
    print("Available commands:\n------------------\n" + "\n".join(lines))


def exit_console(context: "CommandContext", *args: str) -> None:
    print("Exiting...")
    stopped = context.fleet.stop_all()
    if stopped:
        log.info(f"Stopped {stopped} running agent(s) before exit.")
    sys.exit(0)


#* --- Fleet commands ---
def list_agents(context: "CommandContext", *args: str) -> None:
    names = context.fleet.names()
    if not names:
        print("No agents registered.")
        return
    print(f"Agents ({len(names)}):")
    for name, agent in context.fleet.items():
        print(f"  - {name:<24} {'running' if agent.running else 'stopped'}")


def display_status(context: "CommandContext", *args: str) -> None:
    """Shows pid and resource usage for one agent, or for the whole fleet."""
    if args:
        agent = _find_agent(context, args[0], "!status [agent_name]")
        if agent is None:
            return
        agents = [agent]
    else:
        agents = [agent for _, agent in context.fleet.items()]

    print("\n--- Agent Status ---")
    for agent in agents:
        info = agent.status()
        if not info["running"]:
            line = f"  - {info['name']:<24} : STOPPED"
        elif "cpu" in info:
            line = (
                f"  - {info['name']:<24} : PID {info['pid']:<8} | Status: {info['status']} "
                f"| CPU: {info['cpu']:.1f}% | MEM: {info['memory'] / 1024 / 1024:.1f} MB "
                f"| Up: {info['uptime']:.0f}s"
            )
        else:
            line = f"  - {info['name']:<24} : PID {info.get('pid', '?'):<8} | Status: {info.get('status', 'RUNNING')}"
        if info.get("last_error"):
            line += f" | Last error: {info['last_error']}"
        print(line)
    print("-" * 20 + "\n")


def stop_agent(context: "CommandContext", *args: str) -> None:
    agent = _find_agent(context, args[0] if args else None, "!stop <agent_name>")
    if agent is None:
        return
    if agent.stop():
        print(f"Stopped agent '{agent.name}'.")
    else:
        print(f"Agent '{agent.name}' is not running.")


def resume_agent(context: "CommandContext", *args: str) -> None:
    agent = _find_agent(context, args[0] if args else None, "!resume <agent_name>")
    if agent is None:
        return
    if agent.running:
        print(f"Agent '{agent.name}' is already running.")
    elif agent.resume():
        print(f"Resumed agent '{agent.name}'.")
    else:
        print(f"Failed to resume agent '{agent.name}'. Check logs for details.")


def restart_agent(context: "CommandContext", *args: str) -> None:
    agent = _find_agent(context, args[0] if args else None, "!restart <agent_name>")
    if agent is None:
        return
    if agent.restart():
        print(f"Restarted agent '{agent.name}'.")
    else:
        print(f"Failed to restart agent '{agent.name}'. Check logs for details.")


async def relay_message(context: "CommandContext", *args: str) -> None:
    """Hands a message to an agent for delivery to its observers."""
    usage = "!message <agent_name> <text>"
    agent = _find_agent(context, args[0] if args else None, usage)
    if agent is None:
        return
    if len(args) < 2:
        print(f"Usage: {usage}")
        return
    await agent.relay_message(" ".join(args[1:]))
    print(f"Message sent to '{agent.name}'.")


def stop_all_agents(context: "CommandContext", *args: str) -> None:
    count = context.fleet.stop_all()
    print(f"Stopped {count} agent(s).")


def show_config(context: "CommandContext", *args: str) -> None:
    settings = context.settings
    print("\n--- Current Configuration ---")
    for key in sorted(k for k in settings.get_all_settings() if k.isupper()):
        print(f"  {key} = {settings.get(key)}")
    print("---------------------------\n")


def toggle_verbose(context: "CommandContext", *args: str) -> None:
    status = "ON" if toggle_verbose_logging() else "OFF"
    print(f"Verbose console logging is now {status}.")


CONSOLE_COMMANDS = (
    CommandEntry("help", print_help, "Show this help message.", "!help or !?", ("?", "h")),
    CommandEntry("exit", exit_console, "Exit the program.", "!exit", ("quit",)),
)

BUILTIN_COMMANDS = (
    CommandEntry("list", list_agents, "List all agents and whether they are running.", "!list", ("ls", "agents")),
    CommandEntry("status", display_status, "Show pid and resource usage of agents.", "!status [agent_name]", ("st",)),
    CommandEntry("stop", stop_agent, "Stop an agent.", "!stop <agent_name>"),
    CommandEntry("resume", resume_agent, "Start a stopped agent again.", "!resume <agent_name>", ("continue", "start")),
    CommandEntry("restart", restart_agent, "Stop and start an agent.", "!restart <agent_name>"),
    CommandEntry("message", relay_message, "Send a message through an agent.", "!message <agent_name> <text>", ("msg", "say")),
    CommandEntry("stopall", stop_all_agents, "Stop every running agent.", "!stopall"),
    CommandEntry("config", show_config, "Show the effective configuration.", "!config"),
    CommandEntry("verbose", toggle_verbose, "Toggle detailed DEBUG log output in the console.", "!verbose"),
)
