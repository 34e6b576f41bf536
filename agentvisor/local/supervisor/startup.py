import time
import logging
from typing import TYPE_CHECKING, Optional, Sequence

from agentvisor.local import app_globals
from agentvisor.local.fleet import FleetRegistry
from agentvisor.local.profiles import ProfileError, load_profile
from agentvisor.local.supervisor.supervisor import AgentDescriptor, AgentProcess

if TYPE_CHECKING:
    from agentvisor.local.main_proxy import MainProxy

log = logging.getLogger(__name__)


def build_descriptor(
    profile_path: str,
    index: int,
    task_path: Optional[str] = None,
    task_id: Optional[str] = None,
) -> AgentDescriptor:
    """
    Reads a profile and turns it into launch parameters.

    :param profile_path: Path of the agent's profile.
    :param index: Position of the profile on the command line.
    :raises ProfileError: If the profile cannot be used.
    """
    profile = load_profile(profile_path)
    return AgentDescriptor(
        name=profile["name"],
        profile=str(profile_path),
        index=index,
        load_memory=bool(app_globals.LOAD_MEMORY),
        init_message=app_globals.INIT_MESSAGE,
        task_path=task_path,
        task_id=task_id,
    )


def start_fleet(
    profiles: Sequence[str],
    proxy: "MainProxy",
    task_path: Optional[str] = None,
    task_id: Optional[str] = None,
    start_delay: float = None,
) -> FleetRegistry:
    """
    Creates, registers and starts one supervisor per profile.

    A profile that cannot be read is logged and skipped; the rest still start.

    :param profiles: Profile paths, in launch order.
    :param proxy: The registration collaborator notified of every agent.
    :param start_delay: Pause between launches in seconds. Defaults to AGENT_START_DELAY.
    :return: The populated fleet.
    """
    delay = app_globals.AGENT_START_DELAY if start_delay is None else start_delay
    fleet = FleetRegistry()

    for index, profile_path in enumerate(profiles):
        try:
            descriptor = build_descriptor(profile_path, index, task_path, task_id)
        except ProfileError as e:
            log.error(str(e))
            continue

        agent = AgentProcess(descriptor, proxy=proxy)
        if not fleet.add(agent):
            continue
        proxy.register_agent(descriptor.name, agent)

        try:
            agent.start()
        except Exception as e:
            log.error(f"Failed to start agent '{descriptor.name}': {e}", exc_info=True)
        if delay:
            time.sleep(delay)

    log.info(f"Fleet ready with {len(fleet)} agent(s): {', '.join(fleet.names()) or 'none'}")
    return fleet
