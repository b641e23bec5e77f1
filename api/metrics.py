"""
Social Metrics API — Vercel Serverless Function

GET  /api/metrics?url=...                      fetch, store and return one record
GET  /api/metrics?url=...&history=1[&platform=..][&limit=N]
GET  /api/metrics?url=...&latest=1              latest stored record
POST /api/metrics {"urls": [...]}               bulk fetch (max 20), stored
"""
import json
import logging
import os
import sys
from http.server import BaseHTTPRequestHandler
from typing import Optional
from urllib.parse import parse_qs, urlparse

# Add project root to path so lib/ is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lib import config
from lib.utils import setup_logging
from lib.metrics import MetricsDispatcher
from lib.social_store import MetricsStore, create_store

logger = setup_logging()

TRUTHY = ("1", "true", "yes")


class BadRequest(ValueError):
    pass


def fetch_and_store(url: str, dispatcher: MetricsDispatcher, store: MetricsStore) -> dict:
    """Fetch one URL and persist the record (failures included)."""
    record = dispatcher.get_metrics(url)
    return store.add(record).to_dict()


def bulk_fetch_and_store(urls, dispatcher: MetricsDispatcher, store: MetricsStore) -> list[dict]:
    if not isinstance(urls, list) or not urls:
        raise BadRequest("urls must be a non-empty list")
    if len(urls) > config.MAX_BULK_URLS:
        raise BadRequest(f"Maximum {config.MAX_BULK_URLS} URLs allowed")
    if not all(isinstance(u, str) and u.strip() for u in urls):
        raise BadRequest("urls must contain non-empty strings")

    records = dispatcher.get_bulk_metrics([u.strip() for u in urls])
    return [store.add(r).to_dict() for r in records]


def query_history(store: MetricsStore, url: Optional[str], platform: Optional[str],
                  limit: Optional[str]) -> list[dict]:
    if limit is None:
        n = config.HISTORY_DEFAULT_LIMIT
    else:
        try:
            n = int(limit)
        except ValueError:
            raise BadRequest("limit must be an integer")
        if n < 1:
            raise BadRequest("limit must be positive")
    return [m.to_dict() for m in store.get_metrics(url=url, platform=platform, limit=n)]


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for social metrics."""

    def do_GET(self):
        params = parse_qs(urlparse(self.path).query)
        url = _param(params, "url")
        platform = _param(params, "platform")

        try:
            store = create_store()
            if _param(params, "history", "").lower() in TRUTHY:
                return self._send_json(200, query_history(store, url, platform, _param(params, "limit")))

            if not url:
                raise BadRequest("url is required")

            if _param(params, "latest", "").lower() in TRUTHY:
                latest = store.get_latest(url)
                if latest is None:
                    return self._send_json(404, {"error": "No metrics recorded for this URL"})
                return self._send_json(200, latest.to_dict())

            self._send_json(200, fetch_and_store(url, MetricsDispatcher(), store))
        except BadRequest as e:
            self._send_json(400, {"error": str(e)})
        except Exception as e:
            logger.error("Metrics request failed: %s", e, exc_info=True)
            self._send_json(500, {"error": str(e)})

    def do_POST(self):
        content_len = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(content_len) if content_len > 0 else b""

        try:
            try:
                payload = json.loads(body or b"{}")
            except ValueError:
                raise BadRequest("Invalid JSON body")
            if not isinstance(payload, dict):
                raise BadRequest("Body must be a JSON object")

            dispatcher = MetricsDispatcher()
            store = create_store()
            if "urls" in payload:
                result = bulk_fetch_and_store(payload["urls"], dispatcher, store)
            elif payload.get("url"):
                result = fetch_and_store(str(payload["url"]), dispatcher, store)
            else:
                raise BadRequest("url or urls is required")
            self._send_json(200, result)
        except BadRequest as e:
            self._send_json(400, {"error": str(e)})
        except Exception as e:
            logger.error("Metrics request failed: %s", e, exc_info=True)
            self._send_json(500, {"error": str(e)})

    def _send_json(self, code: int, payload):
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode())

    def log_message(self, format, *args):
        logger.debug(format, *args)


def _param(params: dict, name: str, default: Optional[str] = None) -> Optional[str]:
    values = params.get(name)
    return values[0] if values else default
