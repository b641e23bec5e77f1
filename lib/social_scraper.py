"""
Platform metric fetchers.
Reddit is read from its public JSON endpoint; Quora and Twitter/X have no usable
public API, so their counters are scraped from Serper search-result snippets.
"""
import logging
import re
from typing import Optional

import requests

from lib import config
from lib.errors import InvalidUrlError, MetricsError, PayloadError, UpstreamError
from lib.models import MetricsRecord, Platform
from lib.search_proxy import SerperClient
from lib.utils import extract_count

logger = logging.getLogger("socialmetrics.social_scraper")

REDDIT_POST_RE = re.compile(r"reddit\.com/r/[^/]+/comments/([^/]+)")
TWITTER_STATUS_RE = re.compile(r"twitter\.com/[^/]+/status/(\d+)|x\.com/[^/]+/status/(\d+)")


class PlatformFetcher:
    """Base fetcher. `fetch` never raises; subclasses implement `_fetch_metrics`."""

    platform = Platform.UNKNOWN

    def fetch(self, url: str) -> MetricsRecord:
        try:
            metrics = self._fetch_metrics(url)
            return MetricsRecord.ok(self.platform, url, metrics)
        except requests.Timeout:
            logger.error("%s request timed out for %s", self.platform.value, url)
            return MetricsRecord.failure(self.platform, url, "Request timed out")
        except requests.RequestException as e:
            logger.error("%s request failed for %s: %s", self.platform.value, url, e)
            return MetricsRecord.failure(self.platform, url, str(e))
        except MetricsError as e:
            logger.warning("%s metrics unavailable for %s: %s", self.platform.value, url, e)
            return MetricsRecord.failure(self.platform, url, str(e))
        except Exception as e:
            logger.error("Error fetching %s metrics for %s: %s", self.platform.value, url, e,
                         exc_info=True)
            return MetricsRecord.failure(self.platform, url, str(e) or "Unknown error")

    def _fetch_metrics(self, url: str) -> dict[str, int]:
        raise NotImplementedError


class RedditFetcher(PlatformFetcher):
    """Read post counters from Reddit's public comments JSON (no auth)."""

    platform = Platform.REDDIT

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": config.USER_AGENT,
            "Accept": "application/json",
        })

    def _fetch_metrics(self, url: str) -> dict[str, int]:
        match = REDDIT_POST_RE.search(url)
        if not match:
            raise InvalidUrlError("Invalid Reddit URL format")

        post_id = match.group(1)
        api_url = config.REDDIT_COMMENTS_URL.format(post_id=post_id)
        logger.info("Fetching Reddit post %s", post_id)
        resp = self.session.get(api_url, timeout=config.REQUEST_TIMEOUT)
        if not resp.ok:
            raise UpstreamError(f"Reddit API error: {resp.reason}")

        try:
            data = resp.json()
        except ValueError as e:
            raise PayloadError(f"Reddit returned invalid JSON: {e}") from e

        post = self._post_data(data)
        if not post:
            raise PayloadError("Reddit post data not found")

        return {
            "upvotes": int(post.get("ups") or 0),
            "downvotes": int(post.get("downs") or 0),
            "comments": int(post.get("num_comments") or 0),
            "awards": int(post.get("total_awards_received") or 0),
        }

    @staticmethod
    def _post_data(data) -> Optional[dict]:
        # Listing pair: [post listing, comments listing]
        try:
            post = data[0]["data"]["children"][0]["data"]
        except (KeyError, IndexError, TypeError):
            return None
        return post if isinstance(post, dict) else None


class QuoraFetcher(PlatformFetcher):
    """Scrape Quora views/upvotes from a site-restricted search snippet."""

    platform = Platform.QUORA

    def __init__(self, search: Optional[SerperClient] = None):
        self.search = search or SerperClient()

    def _fetch_metrics(self, url: str) -> dict[str, int]:
        result = self.search.first_organic(f'site:quora.com "{url}"')
        if not result:
            raise PayloadError("Quora post not found in search results")

        snippet = result.get("snippet") or ""
        return {
            "views": extract_count(snippet, "view"),
            "upvotes": extract_count(snippet, "upvote"),
            "shares": 0,  # not exposed in snippets
        }


class TwitterFetcher(PlatformFetcher):
    """Scrape tweet likes/retweets/replies from a search snippet.

    When the search proxy has no result for the tweet, `require_result`
    decides between a failure record and an all-zero success record.
    """

    platform = Platform.TWITTER

    def __init__(self, search: Optional[SerperClient] = None,
                 require_result: Optional[bool] = None):
        self.search = search or SerperClient()
        if require_result is None:
            require_result = config.TWITTER_REQUIRE_RESULT
        self.require_result = require_result

    @staticmethod
    def tweet_id(url: str) -> str:
        match = TWITTER_STATUS_RE.search(url)
        if not match:
            raise InvalidUrlError("Invalid Twitter/X URL format")
        return match.group(1) or match.group(2)

    def _fetch_metrics(self, url: str) -> dict[str, int]:
        tweet_id = self.tweet_id(url)
        result = self.search.first_organic(
            f'site:twitter.com OR site:x.com "{tweet_id}" engagement metrics'
        )
        if not result and self.require_result:
            raise PayloadError("Twitter/X post not found in search results")

        snippet = (result or {}).get("snippet") or ""
        return {
            "likes": extract_count(snippet, "like"),
            "retweets": extract_count(snippet, "retweet"),
            "replies": extract_count(snippet, "reply"),
            "quotes": 0,  # requires the paid API
            "bookmarks": 0,  # not public
        }
