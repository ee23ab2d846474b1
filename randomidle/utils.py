"""Utility functions used across modules."""

from __future__ import annotations

import sys
from typing import Any, Iterable, List, Optional

import requests
from loguru import logger
from requests import Session
from requests.adapters import HTTPAdapter, Retry

from .config import Settings
from .models import MAX_ITEM_ID

PLUGIN_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "RandomGamesPlayedWhileIdle | {message}"
)

COMMUNITY_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/137.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}
COMMUNITY_RETRIES = 2

_sink_id: Optional[int] = None


def configure_logging(settings: Settings) -> None:
    """Route plugin logs to stderr at the configured level."""
    global _sink_id
    if _sink_id is not None:
        logger.remove(_sink_id)
    level = "DEBUG" if settings.debug_mode else "INFO"
    # catch=True keeps a failing sink from raising into the caller.
    _sink_id = logger.add(
        sys.stderr, level=level, format=PLUGIN_LOG_FORMAT, filter="randomidle", catch=True
    )


def create_requests_session(settings: Settings) -> Session:
    """
    Session for Steam Community pages, used when the host offers no bot session.

    Sends browser-like headers and retries only the connection step; a
    profile page that fails halfway is fetched again at the next login.
    """
    session = requests.Session()
    session.headers.update(COMMUNITY_HEADERS)
    proxies = {key: value for key, value in settings.proxies.items() if value}

    if proxies:
        session.proxies.update(proxies)
    else:
        session.proxies = {"http": None, "https": None}

    adapter = HTTPAdapter(max_retries=Retry(total=COMMUNITY_RETRIES, connect=COMMUNITY_RETRIES, read=0))
    session.mount("https://", adapter)
    return session


def unique_item_ids(values: Iterable[Any], blacklist: Iterable[int] = ()) -> List[int]:
    """
    Coerce raw values to item ids, keeping first-seen order.

    Values that are not unsigned 32-bit integers are dropped, as are ids
    in the blacklist.
    """
    excluded = set(blacklist)
    seen: set[int] = set()
    result: List[int] = []
    for value in values:
        if isinstance(value, bool):
            continue
        try:
            item_id = int(value)
        except (TypeError, ValueError):
            continue
        if item_id < 0 or item_id > MAX_ITEM_ID:
            continue
        if item_id in seen or item_id in excluded:
            continue
        seen.add(item_id)
        result.append(item_id)
    return result


def log_debug(settings: Settings, message: str) -> None:
    """Log message only if DEBUG_MODE is enabled."""
    if settings.debug_mode:
        logger.debug(message)


def log_account_event(name: str, message: str, level: str = "INFO") -> None:
    """Log a bot-specific event with the bot name prefix."""
    logger.log(level, f"[{name}] {message}")
