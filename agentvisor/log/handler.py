import sys
import socket
import logging
import threading
import requests
from collections import deque
from typing import Any, Deque, Dict, Optional


class LokiHandler(logging.Handler):
    """
    A logging handler that pushes records to a Grafana Loki instance
    in batches from a background thread.
    """
    def __init__(self, url: str, org_id: Optional[str] = None, flush_interval: float = 10, batch_size: int = 200):
        """
        :param url: The base URL of the Loki instance.
        :param org_id: The tenant ID sent as 'X-Scope-OrgID'.
        :param flush_interval: Seconds between periodic flushes.
        :param batch_size: Buffer length that triggers an immediate flush.
        """
        super().__init__()
        self.url = f"{url.rstrip('/')}/loki/api/v1/push"
        self.org_id = org_id
        self.flush_interval = flush_interval
        self.batch_size = batch_size
        self.hostname = socket.gethostname()
        self.log_buffer: Deque[Dict[str, Any]] = deque()
        self.buffer_lock = threading.Lock()

        self.stop_event = threading.Event()
        self.flush_thread = threading.Thread(target=self._periodic_flush, daemon=True, name="LokiFlushThread")
        self.flush_thread.start()

    def _periodic_flush(self) -> None:
        while not self.stop_event.wait(self.flush_interval):
            self.flush()
        self.flush()

    def _labels(self, record: logging.LogRecord) -> Dict[str, str]:
        labels = {
            "job": "agentvisor",
            "level": record.levelname.lower(),
            "hostname": self.hostname,
            "logger": record.name,
        }
        # Supervisor records carry the agent they concern.
        agent = getattr(record, "agent", None)
        if agent:
            labels["agent"] = str(agent)
        return labels

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = {
                "stream": self._labels(record),
                "values": [[str(int(record.created * 1e9)), self.format(record)]],
            }
            with self.buffer_lock:
                self.log_buffer.append(entry)
                if len(self.log_buffer) < self.batch_size:
                    return
            self.flush()
        except Exception as e:
            print(f"ERROR: LokiHandler failed to process a log record: {e}", file=sys.stderr)

    def _take_batch(self) -> list:
        with self.buffer_lock:
            batch = list(self.log_buffer)
            self.log_buffer.clear()
        return batch

    def flush(self) -> None:
        """Sends everything buffered so far. Network errors are reported on stderr."""
        batch = self._take_batch()
        if not batch:
            return

        headers = {'Content-Type': 'application/json'}
        if self.org_id:
            headers['X-Scope-OrgID'] = self.org_id
        try:
            response = requests.post(self.url, json={"streams": batch}, headers=headers, timeout=5)
            # Loki answers a successful push with 204 No Content
            if response.status_code != 204:
                print(f"ERROR: Loki returned {response.status_code}: {response.text}", file=sys.stderr)
        except requests.RequestException as e:
            print(f"CRITICAL: Failed to send {len(batch)} logs to Loki: {e}", file=sys.stderr)

    def close(self) -> None:
        self.stop_event.set()
        if self.flush_thread.is_alive():
            self.flush_thread.join(timeout=self.flush_interval + 2)
        super().close()
