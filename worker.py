"""
Social Metrics Monitor — Continuous Worker
Owns the monitor registry: polls every URL in MONITORED_URLS on a timer and
stores each result. A small control server starts/stops monitors at runtime:

  GET  /monitors                         list active monitors
  POST /monitors/start {"url", "intervalMinutes"}
  POST /monitors/stop  {"url"}
"""
import json
import logging
import signal
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional

from lib import config
from lib.utils import setup_logging
from lib.metrics import MetricsDispatcher
from lib.models import MetricsRecord
from lib.monitor import MonitorRegistry
from lib.social_store import MetricsStore, create_store

logger = setup_logging()


class MonitorService:
    """Wires the registry to the store: every tick is persisted."""

    def __init__(self, registry: MonitorRegistry, store: MetricsStore):
        self.registry = registry
        self.store = store

    def on_tick(self, record: MetricsRecord):
        stored = self.store.add(record)
        if record.success:
            logger.info("Tick %s [%s]: %s", record.url, record.platform.value, json.dumps(dict(record.metrics)))
        else:
            logger.warning("Tick %s failed: %s", record.url, record.error)
        return stored

    def start(self, url: str, interval_ms: int = config.DEFAULT_MONITOR_INTERVAL_MS):
        self.registry.start(url, self.on_tick, interval_ms=interval_ms)

    def stop(self, url: str) -> bool:
        return self.registry.stop(url)

    def status(self) -> dict:
        return {
            "monitors": [
                {"url": url, "intervalMinutes": ms / 60_000}
                for url, ms in sorted(self.registry.active().items())
            ],
            "store": self.store.backend,
        }


def make_control_handler(service: MonitorService):
    class ControlHandler(BaseHTTPRequestHandler):
        def do_GET(self):
            if self.path.rstrip("/") == "/monitors":
                return self._send_json(200, service.status())
            self._send_json(404, {"error": "Not found"})

        def do_POST(self):
            content_len = int(self.headers.get("Content-Length", 0))
            body = self.rfile.read(content_len) if content_len > 0 else b""
            try:
                payload = json.loads(body or b"{}")
            except ValueError:
                return self._send_json(400, {"error": "Invalid JSON body"})

            url = payload.get("url") if isinstance(payload, dict) else None
            if not url:
                return self._send_json(400, {"error": "url is required"})

            path = self.path.rstrip("/")
            if path == "/monitors/start":
                try:
                    minutes = float(payload.get("intervalMinutes", 5))
                    service.start(url, int(minutes * 60_000))
                except (TypeError, ValueError) as e:
                    return self._send_json(400, {"error": str(e)})
                return self._send_json(200, {"url": url, "monitoring": True, "intervalMinutes": minutes})
            if path == "/monitors/stop":
                stopped = service.stop(url)
                return self._send_json(200, {"url": url, "monitoring": False, "stopped": stopped})
            self._send_json(404, {"error": "Not found"})

        def _send_json(self, code: int, payload):
            self.send_response(code)
            self.send_header("Content-Type", "application/json")
            self.end_headers()
            self.wfile.write(json.dumps(payload).encode())

        def log_message(self, format, *args):
            logger.debug(format, *args)

    return ControlHandler


def build_service(store: Optional[MetricsStore] = None) -> MonitorService:
    registry = MonitorRegistry(MetricsDispatcher())
    return MonitorService(registry, store or create_store())


def main():
    """Start configured monitors and serve the control API until signalled."""
    logger.info("=" * 50)
    logger.info("Social Metrics Worker starting...")
    logger.info("Monitored URLs: %d | Interval: %ds", len(config.MONITORED_URLS),
                config.MONITOR_INTERVAL_SECONDS)
    logger.info("=" * 50)

    service = build_service()
    for url in config.MONITORED_URLS:
        service.start(url, config.MONITOR_INTERVAL_SECONDS * 1000)

    shutdown = threading.Event()
    server = None
    if config.WORKER_PORT:
        server = ThreadingHTTPServer(("0.0.0.0", config.WORKER_PORT), make_control_handler(service))
        threading.Thread(target=server.serve_forever, name="control-server", daemon=True).start()
        logger.info("Control server listening on :%d", config.WORKER_PORT)

    def handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down", signum)
        shutdown.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    shutdown.wait()
    if server is not None:
        server.shutdown()
    service.registry.stop_all(join_timeout=config.REQUEST_TIMEOUT)
    logger.info("Worker stopped")


if __name__ == "__main__":
    main()
