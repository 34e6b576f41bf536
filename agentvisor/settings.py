"""
This module contains the configuration settings for the Agentvisor application.
It defines paths, supervision parameters, console behaviour and logging options.
Values can be overridden through environment variables or a `.env` file.
"""

import os
import sys
import pathlib
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=True)

#* --- Core Paths ---
BASE_DIR = pathlib.Path(__file__).resolve().parent.parent  # Project Root
LOGS_DIR = pathlib.Path(os.getenv("AGENTVISOR_LOGS_DIR", str(BASE_DIR / "logs")))
LOG_FILE_PATH = LOGS_DIR / "agentvisor.log"
OVERRIDES_JSON_PATH = pathlib.Path(os.getenv("AGENTVISOR_OVERRIDES", str(BASE_DIR / "overrides.json")))

#* --- Worker Launch Configuration ---
# Interpreter used to launch agent workers. Defaults to the one running the supervisor.
PYTHON_EXECUTABLE = os.getenv("PYTHON_EXECUTABLE", sys.executable)
# Module run with `python -m` for every agent. Point this at the real agent program.
AGENT_ENTRY_MODULE = os.getenv("AGENT_ENTRY_MODULE", "agentvisor.local.script_entry.agent")

#* --- Fleet Settings ---
# Comma-separated list of profile paths used when --profiles is not given.
AGENT_PROFILES = [p.strip() for p in os.getenv("AGENT_PROFILES", "").split(",") if p.strip()]
LOAD_MEMORY = os.getenv("LOAD_MEMORY", "False").lower() in ('true', '1', 't')
INIT_MESSAGE = os.getenv("INIT_MESSAGE") or None
AGENT_START_DELAY = float(os.getenv("AGENT_START_DELAY", "1.0"))  # seconds between agent launches

#* --- Supervisor Settings ---
RESTART_GUARD_SECONDS = 10.0  # an agent that dies sooner than this after spawning is not restarted
RESTART_ANNOUNCEMENT = "Agent process restarted."
INTERRUPT_SIGNAL_NAME = "SIGINT"
STOP_WAIT_SECONDS = 10.0  # how long !restart waits for the old worker to exit

#* --- Console Settings ---
COMMAND_PREFIX = os.getenv("COMMAND_PREFIX", "!")
CONSOLE_PROMPT = "> "

#* --- Registration Service (Mind Server) ---
# When empty, agent connect/logout events are only tracked in-process.
MINDSERVER_URL = os.getenv("MINDSERVER_URL", "")
MINDSERVER_TIMEOUT = 2  # seconds

#* --- Optional Services ---
# Grafana Loki (for observability)
LOKI_ENABLED = os.getenv("LOKI_ENABLED", "False").lower() in ('true', '1', 't')
LOKI_URL = os.getenv("LOKI_URL", "http://localhost:3100")
LOKI_ORG_ID = os.getenv("LOKI_ORG_ID", "fake")

#* --- Logging ---
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUP_COUNT = 3

#* --- Application variables ---
VERBOSE_LOGGING = False

#* --- MODIFIABLE SETTINGS (Changeable through overrides.json) ---
MODIFIABLE_SETTINGS = {
    "AGENT_START_DELAY", "LOAD_MEMORY", "INIT_MESSAGE",
    "LOG_BUFFER_FLUSH_INTERVAL", "LOG_BUFFER_SIZE",
}

#* --- Default Values for Modifiable Settings ---
LOG_BUFFER_FLUSH_INTERVAL = 10
LOG_BUFFER_SIZE = 200
