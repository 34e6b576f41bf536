import logging
import threading
import requests
from typing import TYPE_CHECKING, Any, Dict, Optional

from agentvisor.local import app_globals

if TYPE_CHECKING:
    from agentvisor.local.supervisor import AgentProcess

log = logging.getLogger(__name__)


class MainProxy:
    """
    Registration sink for agent lifecycle events.

    Agents are tracked in-process. When a mind server URL is configured, every
    event is also posted there. Delivery problems are logged, never raised.
    """

    def __init__(self, url: Optional[str] = None, timeout: float = None) -> None:
        self.url = (url if url is not None else app_globals.MINDSERVER_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else app_globals.MINDSERVER_TIMEOUT
        self.connected = False
        self.agents: Dict[str, "AgentProcess"] = {}
        self.logged_in: Dict[str, bool] = {}
        self._lock = threading.Lock()

    def _post(self, event: str, payload: Dict[str, Any]) -> bool:
        if not self.url:
            return False
        try:
            response = requests.post(f"{self.url}/{event}", json=payload, timeout=self.timeout)
            response.raise_for_status()
            return True
        except requests.RequestException as e:
            log.warning(f"Mind server did not accept '{event}' event: {e}")
            return False

    def connect(self) -> None:
        """Announces the supervisor. Called once at startup."""
        self.connected = True
        if self.url:
            log.info(f"Connecting to mind server at {self.url}")
            self._post("connect", {})
        else:
            log.debug("No mind server configured; tracking agents locally.")

    def register_agent(self, name: str, agent: "AgentProcess") -> None:
        with self._lock:
            self.agents[name] = agent
            self.logged_in[name] = True
        log.debug(f"Registered agent '{name}'.")
        self._post("register", {"name": name})

    def logout_agent(self, name: str) -> None:
        with self._lock:
            self.logged_in[name] = False
        log.info(f"Agent '{name}' logged out.")
        self._post("logout", {"name": name})


main_proxy = MainProxy()
