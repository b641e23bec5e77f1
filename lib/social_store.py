"""
Metrics history store.
Append-only log of every fetched MetricsRecord; "latest" is derived from it.
"""
import json
import logging
import threading
from typing import Iterable, Optional

from upstash_redis import Redis

from lib import config
from lib.models import MetricsRecord, StoredMetric
from lib.utils import utc_now

logger = logging.getLogger("socialmetrics.social_store")


class MetricsStore:
    """Query logic shared by the store backends.

    Subclasses implement `add`, `count` and `_all`.
    """

    backend = "abstract"

    def add(self, record: MetricsRecord) -> StoredMetric:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError

    def _all(self) -> Iterable[StoredMetric]:
        raise NotImplementedError

    def _recent(self, count: int) -> Iterable[StoredMetric]:
        """At least the `count` most recent records; backends may read less than `_all`."""
        return self._all()

    def get_metrics(self, url: Optional[str] = None, platform: Optional[str] = None,
                    limit: Optional[int] = None) -> list[StoredMetric]:
        """Stored records, newest first, optionally filtered by exact url/platform."""
        if limit is not None and not url and not platform:
            items = list(self._recent(max(limit, 0)))
        else:
            items = list(self._all())
        if url:
            items = [m for m in items if m.record.url == url]
        if platform:
            items = [m for m in items if m.record.platform == platform]
        items.sort(key=lambda m: (m.created_at, m.id), reverse=True)
        if limit is not None:
            items = items[:max(limit, 0)]
        return items

    def get_latest(self, url: str) -> Optional[StoredMetric]:
        metrics = self.get_metrics(url=url)
        return metrics[0] if metrics else None


class MemoryMetricsStore(MetricsStore):
    """Process-memory store. Contents are lost on restart."""

    backend = "memory"

    def __init__(self):
        self._items: list[StoredMetric] = []
        self._next_id = 1
        self._lock = threading.Lock()

    def add(self, record: MetricsRecord) -> StoredMetric:
        with self._lock:
            stored = StoredMetric(id=self._next_id, created_at=utc_now(), record=record)
            self._next_id += 1
            self._items.append(stored)
        return stored

    def count(self) -> int:
        with self._lock:
            return len(self._items)

    def _all(self) -> Iterable[StoredMetric]:
        with self._lock:
            return list(self._items)


class RedisMetricsStore(MetricsStore):
    """Metrics history in Upstash Redis.

    Redis key design:
    - <prefix>:next_id  -> INCR counter for record ids
    - <prefix>:history  -> LIST of JSON records, appended with RPUSH
    """

    backend = "redis"

    def __init__(self, redis: Optional[Redis] = None, prefix: str = ""):
        self.redis = redis or Redis(
            url=config.UPSTASH_REDIS_REST_URL,
            token=config.UPSTASH_REDIS_REST_TOKEN,
        )
        prefix = prefix or config.METRICS_KEY_PREFIX
        self.id_key = f"{prefix}:next_id"
        self.history_key = f"{prefix}:history"

    def add(self, record: MetricsRecord) -> StoredMetric:
        stored = StoredMetric(
            id=int(self.redis.incr(self.id_key)),
            created_at=utc_now(),
            record=record,
        )
        self.redis.rpush(self.history_key, json.dumps(stored.to_dict()))
        return stored

    def count(self) -> int:
        return int(self.redis.llen(self.history_key) or 0)

    def _all(self) -> Iterable[StoredMetric]:
        # Filtered queries (by url/platform, and get_latest) read the whole list
        return self._load(self.redis.lrange(self.history_key, 0, -1))

    def _recent(self, count: int) -> Iterable[StoredMetric]:
        if count <= 0:
            return []
        # RPUSH order follows creation order, so the tail holds the newest records
        return self._load(self.redis.lrange(self.history_key, -count, -1))

    @staticmethod
    def _load(raw) -> list[StoredMetric]:
        items = []
        for entry in raw or []:
            try:
                data = json.loads(entry)
                if not isinstance(data, dict):
                    raise ValueError(f"expected a JSON object, got {type(data).__name__}")
                items.append(StoredMetric.from_dict(data))
            except (ValueError, KeyError, TypeError) as e:
                logger.warning("Skipping unreadable history entry: %s", e)
        return items


def create_store() -> MetricsStore:
    """Redis store when Upstash credentials are configured, memory otherwise."""
    if config.UPSTASH_REDIS_REST_URL and config.UPSTASH_REDIS_REST_TOKEN:
        return RedisMetricsStore()
    logger.info("Upstash Redis not configured, using in-memory metrics store")
    return MemoryMetricsStore()
