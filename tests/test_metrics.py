"""
Tests for platform routing and bulk fetch orchestration.
"""

import time
from unittest.mock import Mock, patch

import pytest

from lib.metrics import UNSUPPORTED_PLATFORM_ERROR, MetricsDispatcher, detect_platform
from lib.models import MetricsRecord, Platform
from tests.conftest import QUORA_URL, REDDIT_URL, TWITTER_URL, X_URL


def fetcher_for(platform):
    fetcher = Mock()
    fetcher.fetch.side_effect = lambda url: MetricsRecord.ok(platform, url, {})
    return fetcher


@pytest.fixture
def fetchers():
    return {p: fetcher_for(p) for p in (Platform.REDDIT, Platform.QUORA, Platform.TWITTER)}


class TestDetectPlatform:

    @pytest.mark.parametrize("url,platform", [
        (REDDIT_URL, Platform.REDDIT),
        ("HTTPS://WWW.REDDIT.COM/r/Python/comments/XyZ/", Platform.REDDIT),
        (QUORA_URL, Platform.QUORA),
        ("https://Quora.com/Some-Question", Platform.QUORA),
        (TWITTER_URL, Platform.TWITTER),
        (X_URL, Platform.TWITTER),
        ("https://X.COM/jack/status/1", Platform.TWITTER),
        ("https://example.com/not-social", Platform.UNKNOWN),
    ])
    def test_routing(self, url, platform):
        assert detect_platform(url) == platform


class TestMetricsDispatcher:

    def test_routes_to_matching_fetcher_preserving_case(self, fetchers):
        dispatcher = MetricsDispatcher(fetchers=fetchers)
        url = "https://WWW.Reddit.com/r/Python/comments/AbC/"

        record = dispatcher.get_metrics(url)

        assert record.platform == Platform.REDDIT
        assert record.url == url
        fetchers[Platform.REDDIT].fetch.assert_called_once_with(url)
        fetchers[Platform.QUORA].fetch.assert_not_called()

    def test_unsupported_platform_makes_no_call(self, fetchers):
        dispatcher = MetricsDispatcher(fetchers=fetchers)

        record = dispatcher.get_metrics("https://example.com/not-social")

        assert record.platform == Platform.UNKNOWN
        assert record.success is False
        assert record.error == UNSUPPORTED_PLATFORM_ERROR
        assert record.error == "Unsupported platform. Supported: Reddit, Quora, Twitter/X"
        for fetcher in fetchers.values():
            fetcher.fetch.assert_not_called()

    def test_default_fetchers_never_hit_network_for_unknown(self):
        with patch("requests.Session.request") as request:
            record = MetricsDispatcher().get_metrics("https://example.com/not-social")
        assert record.success is False
        request.assert_not_called()


class TestBulkMetrics:

    def test_keeps_input_order_with_independent_status(self, fetchers):
        def slow_failure(url):
            time.sleep(0.05)
            return MetricsRecord.failure(Platform.QUORA, url, "Quora post not found in search results")

        fetchers[Platform.QUORA].fetch.side_effect = slow_failure
        dispatcher = MetricsDispatcher(fetchers=fetchers, max_workers=4)

        results = dispatcher.get_bulk_metrics([QUORA_URL, REDDIT_URL])

        assert [r.url for r in results] == [QUORA_URL, REDDIT_URL]
        assert [r.success for r in results] == [False, True]

    def test_mixed_batch(self, fetchers):
        dispatcher = MetricsDispatcher(fetchers=fetchers)
        urls = [TWITTER_URL, "https://example.com/a", REDDIT_URL, "https://example.com/b"]

        results = dispatcher.get_bulk_metrics(urls)

        assert [r.url for r in results] == urls
        assert [r.platform for r in results] == [
            Platform.TWITTER, Platform.UNKNOWN, Platform.REDDIT, Platform.UNKNOWN,
        ]

    def test_zero_workers_setting_still_runs(self, fetchers):
        with patch("lib.metrics.config.BULK_MAX_WORKERS", 0):
            dispatcher = MetricsDispatcher(fetchers=fetchers)

        assert dispatcher.max_workers == 1
        results = dispatcher.get_bulk_metrics([REDDIT_URL, QUORA_URL])
        assert [r.success for r in results] == [True, True]

    def test_empty_batch(self, fetchers):
        assert MetricsDispatcher(fetchers=fetchers).get_bulk_metrics([]) == []

    def test_runs_concurrently(self, fetchers):
        def slow(url):
            time.sleep(0.2)
            return MetricsRecord.ok(Platform.REDDIT, url, {})

        fetchers[Platform.REDDIT].fetch.side_effect = slow
        dispatcher = MetricsDispatcher(fetchers=fetchers, max_workers=5)

        started = time.monotonic()
        dispatcher.get_bulk_metrics([REDDIT_URL] * 5)

        assert time.monotonic() - started < 0.8
