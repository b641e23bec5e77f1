"""
Fixtures and test doubles for the social metrics test suite.
"""

from unittest.mock import Mock

import pytest

from lib.models import MetricsRecord, Platform
from lib.social_store import MemoryMetricsStore


REDDIT_URL = "https://reddit.com/r/programming/comments/abc123/title"
QUORA_URL = "https://www.quora.com/What-is-Python/answer/Jane-Doe"
TWITTER_URL = "https://twitter.com/jack/status/20"
X_URL = "https://x.com/jack/status/1234567890"


def make_response(payload=None, ok=True, reason="OK", status_code=200):
    """A stand-in for requests.Response with the attributes the fetchers read."""
    resp = Mock()
    resp.ok = ok
    resp.reason = reason
    resp.status_code = status_code
    resp.json = Mock(return_value=payload)
    return resp


class FakeRedis:
    """In-memory subset of the Upstash Redis client used by RedisMetricsStore."""

    def __init__(self):
        self.counters = {}
        self.lists = {}

    def incr(self, key):
        self.counters[key] = self.counters.get(key, 0) + 1
        return self.counters[key]

    def rpush(self, key, *values):
        self.lists.setdefault(key, []).extend(values)
        return len(self.lists[key])

    def lrange(self, key, start, stop):
        items = self.lists.get(key, [])
        return items[start:] if stop == -1 else items[start:stop + 1]

    def llen(self, key):
        return len(self.lists.get(key, []))


@pytest.fixture
def reddit_payload():
    """Reddit comments listing for a single post."""
    return [
        {"data": {"children": [{"data": {
            "ups": 42,
            "downs": 3,
            "num_comments": 7,
            "total_awards_received": 1,
        }}]}},
        {"data": {"children": []}},
    ]


@pytest.fixture
def mock_session():
    return Mock()


@pytest.fixture
def mock_search():
    search = Mock()
    search.first_organic = Mock(return_value=None)
    return search


@pytest.fixture
def memory_store():
    return MemoryMetricsStore()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def ok_record():
    return MetricsRecord.ok(Platform.REDDIT, REDDIT_URL,
                            {"upvotes": 1, "downvotes": 0, "comments": 0, "awards": 0})


@pytest.fixture
def failed_record():
    return MetricsRecord.failure(Platform.QUORA, QUORA_URL, "Quora post not found in search results")
