"""
Monitor registry.
Keeps one recurring fetch per monitored URL, each on its own daemon thread.
Storage is the callback's job; the registry only schedules and fetches.
"""
import logging
import threading
from typing import Callable, Optional

from lib import config
from lib.metrics import MetricsDispatcher
from lib.models import MetricsRecord

logger = logging.getLogger("socialmetrics.monitor")

TickCallback = Callable[[MetricsRecord], None]


class MonitorHandle:
    """A running monitor: its URL, interval and cancellation event."""

    def __init__(self, url: str, interval_ms: int, on_tick: TickCallback):
        self.url = url
        self.interval_ms = interval_ms
        self.on_tick = on_tick
        self.stopped = threading.Event()
        # Held across the stopped check and the callback; reentrant so a
        # callback may stop its own monitor.
        self.tick_lock = threading.RLock()
        self.thread: Optional[threading.Thread] = None

    def cancel(self):
        """Stop future ticks. Blocks while a callback is running, so no tick follows."""
        self.stopped.set()
        with self.tick_lock:
            pass


class MonitorRegistry:
    """Start, replace and stop recurring metric fetches keyed by URL.

    Owned by the process that creates it (see worker.py); there is no
    module-level instance. Monitors do not survive a restart.

    A stop takes effect at the next cancellation point: a fetch already in
    flight finishes, but its result is discarded and `on_tick` is not called.
    Once `stop` (or a replacing `start`) returns, the old monitor never ticks
    again; a callback already running is waited for.
    """

    def __init__(self, dispatcher: MetricsDispatcher):
        self.dispatcher = dispatcher
        self._monitors: dict[str, MonitorHandle] = {}
        self._lock = threading.Lock()

    def start(self, url: str, on_tick: TickCallback,
              interval_ms: int = config.DEFAULT_MONITOR_INTERVAL_MS) -> MonitorHandle:
        """Fetch now, then every `interval_ms`, calling `on_tick` with each record.

        An existing monitor for the same URL is stopped first.
        """
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")

        handle = MonitorHandle(url, interval_ms, on_tick)
        handle.thread = threading.Thread(
            target=self._run, args=(handle,), name=f"monitor:{url}", daemon=True,
        )
        with self._lock:
            previous = self._monitors.pop(url, None)
            self._monitors[url] = handle

        # Cancel outside the registry lock: it may wait on a running callback
        if previous is not None:
            previous.cancel()
            logger.info("Replacing monitor for %s (%dms -> %dms)",
                        url, previous.interval_ms, interval_ms)
        handle.thread.start()

        logger.info("Monitoring %s every %ds", url, interval_ms // 1000)
        return handle

    def stop(self, url: str) -> bool:
        """Stop monitoring `url`. Returns False (and does nothing) if it was not monitored."""
        with self._lock:
            handle = self._monitors.pop(url, None)
        if handle is None:
            return False
        handle.cancel()
        logger.info("Stopped monitoring %s", url)
        return True

    def stop_all(self, join_timeout: float = 0) -> int:
        """Stop every monitor. With `join_timeout`, wait up to that long for each thread."""
        with self._lock:
            handles = list(self._monitors.values())
            self._monitors.clear()
        for handle in handles:
            handle.cancel()
        if join_timeout:
            for handle in handles:
                handle.thread.join(join_timeout)
        if handles:
            logger.info("Stopped %d monitors", len(handles))
        return len(handles)

    def is_monitoring(self, url: str) -> bool:
        with self._lock:
            return url in self._monitors

    def active(self) -> dict[str, int]:
        """Monitored URLs mapped to their interval in milliseconds."""
        with self._lock:
            return {url: h.interval_ms for url, h in self._monitors.items()}

    def _run(self, handle: MonitorHandle):
        interval = handle.interval_ms / 1000
        while not handle.stopped.is_set():
            record = self.dispatcher.get_metrics(handle.url)
            with handle.tick_lock:
                if handle.stopped.is_set():
                    logger.debug("Discarding result for stopped monitor %s", handle.url)
                    break
                try:
                    handle.on_tick(record)
                except Exception as e:
                    logger.error("Monitor callback failed for %s: %s", handle.url, e, exc_info=True)
            if handle.stopped.wait(interval):
                break
