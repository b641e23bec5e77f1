import logging
import re
import sys
from datetime import datetime, timezone

from dateutil import parser as dateparser

from lib import config


def setup_logging() -> logging.Logger:
    logger = logging.getLogger("socialmetrics")
    logger.setLevel(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))

    if not logger.handlers:
        fmt = logging.Formatter("[%(asctime)s] %(levelname)s %(name)s: %(message)s",
                                datefmt="%Y-%m-%d %H:%M:%S")
        ch = logging.StreamHandler(sys.stdout)
        ch.setFormatter(fmt)
        logger.addHandler(ch)

    return logger


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def utc_now_iso() -> str:
    return format_timestamp(utc_now())


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string (with or without offset) into an aware UTC datetime."""
    dt = dateparser.isoparse(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def extract_count(text: str, noun: str) -> int:
    """Pull a counter like '12,345 views' out of free text.

    `noun` is the singular form; an optional trailing 's' is accepted for
    regular plurals and 'ies' for nouns ending in 'y' ("reply" -> "replies").
    Returns 0 when nothing matches.
    """
    if not text:
        return 0
    if noun.endswith("y"):
        suffix = re.escape(noun[:-1]) + r"(?:y|ies)"
    else:
        suffix = re.escape(noun) + r"s?"
    match = re.search(r"(\d+(?:,\d+)*)\s*" + suffix, text, re.IGNORECASE)
    if not match:
        return 0
    return int(match.group(1).replace(",", ""))
