import os

# Search proxy (Serper) used for Quora and Twitter/X
SERPER_API_KEY = os.environ.get("SERPER_API_KEY", "")
SERPER_SEARCH_URL = os.environ.get("SERPER_SEARCH_URL", "https://google.serper.dev/search")

# Reddit public JSON endpoint
REDDIT_COMMENTS_URL = "https://www.reddit.com/comments/{post_id}.json"

# Twitter/X: fail when the search proxy returns no result (false = zeros with success)
TWITTER_REQUIRE_RESULT = os.environ.get("TWITTER_REQUIRE_RESULT", "true").lower() in ("1", "true", "yes")

# Monitoring
DEFAULT_MONITOR_INTERVAL_MS = 300_000  # 5 minutes
MONITOR_INTERVAL_SECONDS = int(os.environ.get("MONITOR_INTERVAL", "300"))
MONITORED_URLS = [u.strip() for u in os.environ.get("MONITORED_URLS", "").split(",") if u.strip()]
WORKER_PORT = int(os.environ.get("WORKER_PORT", "8080"))  # 0 disables the control server

# Bulk fetch
MAX_BULK_URLS = 20
BULK_MAX_WORKERS = int(os.environ.get("BULK_MAX_WORKERS", "8"))

# History queries
HISTORY_DEFAULT_LIMIT = 20

# Upstash Redis
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")
METRICS_KEY_PREFIX = os.environ.get("METRICS_KEY_PREFIX", "social_metrics")

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Request settings
REQUEST_TIMEOUT = 30
USER_AGENT = "SocialMonitor-AI/1.0 (Social Media Analytics Tool)"
