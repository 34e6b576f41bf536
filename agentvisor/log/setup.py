import sys
import logging
from logging.handlers import RotatingFileHandler

from agentvisor.local import app_globals as config
from agentvisor.log.handler import LokiHandler

LOG_FORMAT = '%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'


class MainFormatter(logging.Formatter):
    """Formats records and prefixes the agent name when a record carries one."""

    def __init__(self) -> None:
        super().__init__(LOG_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        formatted_message = super().format(record)
        agent = getattr(record, "agent", None)
        if agent:
            return formatted_message.replace("] - ", f"] - ({agent}) ", 1)
        return formatted_message


def setup_logging(console_level: int = logging.INFO, log_to_file: bool = True) -> None:
    """
    Configures the root logger for the application.
    This sets up handlers for the console, a rotating log file and optionally Loki,
    clearing any previously configured handlers to prevent duplication.

    :param console_level: The logging level for the console output (e.g., logging.INFO).
    :param log_to_file: Whether to also write to the rotating log file.
    """
    root_logger = logging.getLogger()
    # Set root level to lowest to capture all messages for handler filtering
    root_logger.setLevel(logging.DEBUG)

    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(MainFormatter())
    root_logger.addHandler(console_handler)

    # --- File Handler ---
    if log_to_file:
        try:
            config.LOG_FILE_PATH.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                config.LOG_FILE_PATH,
                maxBytes=config.LOG_FILE_MAX_BYTES,
                backupCount=config.LOG_FILE_BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(MainFormatter())
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.error(f"Failed to open log file '{config.LOG_FILE_PATH}': {e}. File logging disabled.")

    # --- Loki Handler (conditional) ---
    if config.LOKI_ENABLED:
        try:
            loki_handler = LokiHandler(
                url=config.LOKI_URL,
                org_id=config.LOKI_ORG_ID,
                flush_interval=config.LOG_BUFFER_FLUSH_INTERVAL,
                batch_size=config.LOG_BUFFER_SIZE,
            )
            loki_handler.setLevel(logging.INFO) # Avoid spamming Loki with DEBUG logs
            root_logger.addHandler(loki_handler)
            root_logger.info(f"Grafana Loki logging handler initialized for {config.LOKI_URL}.")
        except Exception as e:
            root_logger.error(f"Failed to initialize Grafana Loki logging handler: {e}")


def toggle_verbose_logging() -> bool:
    """
    Toggles verbose (DEBUG level) logging for the console handler.

    :return: The new verbose state.
    """
    config.VERBOSE_LOGGING = not config.VERBOSE_LOGGING
    new_level = logging.DEBUG if config.VERBOSE_LOGGING else logging.INFO

    for handler in logging.getLogger().handlers:
        # RotatingFileHandler is a StreamHandler too; only the console one is changed.
        if type(handler) is logging.StreamHandler:
            handler.setLevel(new_level)
    return config.VERBOSE_LOGGING
