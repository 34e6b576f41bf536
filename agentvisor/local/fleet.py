import logging
import threading
from typing import Dict, Iterator, List, Optional, Tuple

from agentvisor.local.supervisor import AgentProcess

log = logging.getLogger(__name__)


class FleetRegistry:
    """
    Maps agent names to their supervisors, in startup order.

    Entries are added while the fleet is built and never removed: a stopped
    agent stays addressable so it can be resumed.
    """

    def __init__(self) -> None:
        self._agents: Dict[str, AgentProcess] = {}
        self._lock = threading.Lock()

    def add(self, agent: AgentProcess) -> bool:
        """
        :param agent: The supervisor to register under its agent name.
        :return: False if the name is already taken; the existing entry is kept.
        """
        with self._lock:
            if agent.name in self._agents:
                log.error(f"Duplicate agent name '{agent.name}'. Skipping profile '{agent.descriptor.profile}'.")
                return False
            self._agents[agent.name] = agent
            return True

    def get(self, name: str) -> Optional[AgentProcess]:
        with self._lock:
            return self._agents.get(name)

    def names(self) -> List[str]:
        with self._lock:
            return list(self._agents)

    def items(self) -> List[Tuple[str, AgentProcess]]:
        with self._lock:
            return list(self._agents.items())

    def stop_all(self) -> int:
        """Stops every running agent and returns how many were running."""
        return sum(1 for _, agent in self.items() if agent.stop())

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._agents

    def __len__(self) -> int:
        with self._lock:
            return len(self._agents)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())
