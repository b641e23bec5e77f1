"""
Serper search-proxy client.
Used as an indirect scraping source for platforms without a public data API.
"""
import logging
from typing import Optional

import requests

from lib import config
from lib.errors import PayloadError, SearchProxyError

logger = logging.getLogger("socialmetrics.search_proxy")


class SerperClient:
    """POST a free-text query to Serper and return its organic results."""

    def __init__(self, api_key: str = "", session: Optional[requests.Session] = None):
        self.api_key = api_key or config.SERPER_API_KEY
        self.search_url = config.SERPER_SEARCH_URL
        self.session = session or requests.Session()

    def search(self, query: str, num: int = 1) -> list[dict]:
        """Run a search and return the `organic` result list (possibly empty)."""
        if not self.api_key:
            raise SearchProxyError("SERPER_API_KEY not configured")

        logger.debug("Serper query: %s (num=%d)", query, num)
        resp = self.session.post(
            self.search_url,
            json={"q": query, "num": num},
            headers={
                "X-API-KEY": self.api_key,
                "Content-Type": "application/json",
            },
            timeout=config.REQUEST_TIMEOUT,
        )
        if not resp.ok:
            raise SearchProxyError(f"Serper API error: {resp.reason}")

        try:
            data = resp.json()
        except ValueError as e:
            raise PayloadError(f"Serper returned invalid JSON: {e}") from e

        organic = data.get("organic") if isinstance(data, dict) else None
        return organic if isinstance(organic, list) else []

    def first_organic(self, query: str) -> Optional[dict]:
        results = self.search(query, num=1)
        return results[0] if results else None
