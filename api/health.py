"""
Health check endpoint — GET /api/health
Returns metrics store backend, connectivity and record count.
"""
import json
import os
import sys
from http.server import BaseHTTPRequestHandler

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lib import config
from lib.social_store import create_store


def health_status() -> dict:
    status = {"service": "Social Metrics Monitor", "status": "ok"}

    try:
        store = create_store()
        status["store"] = store.backend
        status["records"] = store.count()
        status["serper"] = "configured" if config.SERPER_API_KEY else "missing"
    except Exception as e:
        status["status"] = "error"
        status["store_error"] = str(e)

    return status


class handler(BaseHTTPRequestHandler):
    def do_GET(self):
        status = health_status()
        code = 200 if status["status"] == "ok" else 503
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.end_headers()
        self.wfile.write(json.dumps(status, indent=2).encode())

    def log_message(self, format, *args):
        pass
