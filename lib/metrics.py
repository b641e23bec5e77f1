"""
Metrics dispatcher and bulk fetch orchestration.
Routes a URL to its platform fetcher; fans lists of URLs out over a thread pool.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

from lib import config
from lib.models import MetricsRecord, Platform
from lib.social_scraper import PlatformFetcher, QuoraFetcher, RedditFetcher, TwitterFetcher

logger = logging.getLogger("socialmetrics.metrics")

UNSUPPORTED_PLATFORM_ERROR = "Unsupported platform. Supported: Reddit, Quora, Twitter/X"

# First match wins
ROUTES = [
    (Platform.REDDIT, ("reddit.com",)),
    (Platform.QUORA, ("quora.com",)),
    (Platform.TWITTER, ("twitter.com", "x.com")),
]


def detect_platform(url: str) -> Platform:
    """Platform for a URL by substring match on its lower-cased form."""
    lowered = url.lower()
    for platform, needles in ROUTES:
        if any(n in lowered for n in needles):
            return platform
    return Platform.UNKNOWN


class MetricsDispatcher:
    def __init__(self, fetchers: Optional[dict[Platform, PlatformFetcher]] = None,
                 max_workers: int = 0):
        if fetchers is None:
            fetchers = {
                Platform.REDDIT: RedditFetcher(),
                Platform.QUORA: QuoraFetcher(),
                Platform.TWITTER: TwitterFetcher(),
            }
        self.fetchers = fetchers
        self.max_workers = max(1, max_workers or config.BULK_MAX_WORKERS)

    def get_metrics(self, url: str) -> MetricsRecord:
        """Fetch metrics for one URL. Never raises."""
        platform = detect_platform(url)
        fetcher = self.fetchers.get(platform)
        if fetcher is None:
            logger.warning("Unsupported platform for %s", url)
            return MetricsRecord.failure(Platform.UNKNOWN, url, UNSUPPORTED_PLATFORM_ERROR)

        record = fetcher.fetch(url)
        if record.success:
            logger.info("Fetched %s metrics for %s: %s", platform.value, url, dict(record.metrics))
        return record

    def get_bulk_metrics(self, urls: Sequence[str]) -> list[MetricsRecord]:
        """Fetch all URLs concurrently; results keep input order.

        Every element is a well-formed record, so one failure never
        affects its siblings. Batch size is the caller's responsibility.
        """
        if not urls:
            return []

        workers = min(self.max_workers, len(urls))
        results: list[Optional[MetricsRecord]] = [None] * len(urls)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="bulk-metrics") as pool:
            futures = {pool.submit(self.get_metrics, url): i for i, url in enumerate(urls)}
            for future, index in futures.items():
                results[index] = future.result()

        ok = sum(1 for r in results if r.success)
        logger.info("Bulk fetch complete: %d/%d succeeded", ok, len(urls))
        return results
