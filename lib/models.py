from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from lib.utils import format_timestamp, parse_timestamp, utc_now_iso


class Platform(str, Enum):
    REDDIT = "reddit"
    QUORA = "quora"
    TWITTER = "twitter"
    UNKNOWN = "unknown"


# Counters each platform can report
PLATFORM_METRIC_KEYS = {
    Platform.REDDIT: ("upvotes", "downvotes", "comments", "awards"),
    Platform.QUORA: ("views", "upvotes", "shares"),
    Platform.TWITTER: ("likes", "retweets", "replies", "quotes", "bookmarks"),
    Platform.UNKNOWN: (),
}


@dataclass(frozen=True)
class MetricsRecord:
    """Normalized outcome of one fetch attempt (success or failure)."""
    platform: Platform
    url: str
    metrics: Mapping[str, int] = field(default_factory=dict)
    timestamp: str = ""
    success: bool = True
    error: Optional[str] = None

    def __post_init__(self):
        # Read-only copy: stored history must not be editable through a record
        object.__setattr__(self, "metrics", MappingProxyType(dict(self.metrics)))

    @classmethod
    def ok(cls, platform: Platform, url: str, metrics: dict[str, int]) -> "MetricsRecord":
        allowed = PLATFORM_METRIC_KEYS[platform]
        unknown = set(metrics) - set(allowed)
        if unknown:
            raise ValueError(f"Invalid metric keys for {platform.value}: {sorted(unknown)}")
        return cls(platform=platform, url=url, metrics=dict(metrics),
                   timestamp=utc_now_iso(), success=True)

    @classmethod
    def failure(cls, platform: Platform, url: str, error: str) -> "MetricsRecord":
        return cls(platform=platform, url=url, metrics={},
                   timestamp=utc_now_iso(), success=False, error=error)

    def to_dict(self) -> dict:
        data = {
            "platform": self.platform.value,
            "url": self.url,
            "metrics": dict(self.metrics),
            "timestamp": self.timestamp,
            "success": self.success,
        }
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "MetricsRecord":
        return cls(
            platform=Platform(data.get("platform", Platform.UNKNOWN.value)),
            url=data["url"],
            metrics={k: int(v) for k, v in (data.get("metrics") or {}).items()},
            timestamp=data.get("timestamp", ""),
            success=bool(data.get("success", False)),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class StoredMetric:
    """A MetricsRecord as persisted by a metrics store."""
    id: int
    created_at: datetime
    record: MetricsRecord

    def to_dict(self) -> dict:
        data = self.record.to_dict()
        data["id"] = self.id
        data["createdAt"] = format_timestamp(self.created_at)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "StoredMetric":
        return cls(
            id=int(data["id"]),
            created_at=parse_timestamp(data["createdAt"]),
            record=MetricsRecord.from_dict(data),
        )
