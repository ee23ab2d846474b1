"""Retrieval of the games a bot owns."""

from __future__ import annotations

import html
import re
from typing import Iterable, List, Optional, Protocol, Tuple

import requests

from .config import Settings
from .errors import ErrorType, FetchError, classify_error
from .host import HostBot, OwnedGamesProvider, bot_web_session
from .utils import COMMUNITY_HEADERS, create_requests_session, log_debug, unique_item_ids

STEAM_COMMUNITY_URL = "https://steamcommunity.com"

GAMES_LIST_PATTERN = re.compile(r'\{"appid":(\d+),"name":"')
GAMES_LIST_CONFIG_PATTERN = re.compile(
    r"<([a-zA-Z][\w-]*)\b[^>]*\bid\s*=\s*[\"']gameslist_config[\"'][^>]*>", re.IGNORECASE
)


class ItemSource(Protocol):
    def fetch(self, bot: HostBot, blacklist: Iterable[int] = ()) -> Tuple[int, ...]:
        ...


def games_list_element(page: str) -> Optional[str]:
    """
    Return the outer HTML of the ``gameslist_config`` element.

    Runs from the opening tag to its matching close tag, or to the end of
    the page when the element is never closed. None when there is no such
    element.
    """
    opening = GAMES_LIST_CONFIG_PATTERN.search(page)
    if opening is None:
        return None

    tag = re.escape(opening.group(1))
    tags = re.compile(rf"<(/?){tag}\b[^>]*>", re.IGNORECASE)
    depth = 1
    for match in tags.finditer(page, opening.end()):
        if match.group(0).endswith("/>"):
            continue
        depth += -1 if match.group(1) else 1
        if depth == 0:
            return page[opening.start():match.end()]
    return page[opening.start():]


def extract_item_ids(page: str) -> List[int]:
    """
    Extract app ids from a games page.

    The ids live in a JSON blob in the ``gameslist_config`` element, either
    in an attribute or in its body, usually HTML-escaped. When that element
    is present only it is scanned, otherwise the whole page.
    """
    element = games_list_element(page)
    text = html.unescape(page if element is None else element)
    return [int(match) for match in GAMES_LIST_PATTERN.findall(text)]


class ProfileGamesSource:
    """Scrapes the games list from the bot's community profile page."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def profile_url(self, bot: HostBot) -> str:
        return f"{STEAM_COMMUNITY_URL}/profiles/{bot.steam_id}/games"

    def fetch(self, bot: HostBot, blacklist: Iterable[int] = ()) -> Tuple[int, ...]:
        url = self.profile_url(bot)
        session = bot_web_session(bot) or create_requests_session(self.settings)
        log_debug(self.settings, f"[{bot.name}] Fetching games list from {url}")

        try:
            response = session.get(url, headers=COMMUNITY_HEADERS, timeout=self.settings.request_timeout)
            response.raise_for_status()
            page = response.text
        except requests.RequestException as exc:
            raise FetchError(f"Failed to fetch {url}: {exc}", classify_error(exc)) from exc

        if not isinstance(page, str):
            raise FetchError(f"Unexpected response body from {url}", ErrorType.PARSE_ERROR)

        return tuple(unique_item_ids(extract_item_ids(page), blacklist))


class OwnedGamesSource:
    """Uses the host's owned games API (app id -> name)."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def fetch(self, bot: HostBot, blacklist: Iterable[int] = ()) -> Tuple[int, ...]:
        if not isinstance(bot, OwnedGamesProvider):
            raise FetchError(f"Bot {bot.name} does not expose owned games", ErrorType.HOST_ERROR)

        log_debug(self.settings, f"[{bot.name}] Requesting owned games from host")
        try:
            owned = bot.get_owned_games()
        except Exception as exc:  # pylint: disable=broad-except
            raise FetchError(f"Owned games request failed: {exc}", classify_error(exc)) from exc

        if owned is None:
            raise FetchError(f"Host returned no owned games for {bot.name}", ErrorType.NETWORK_ERROR)

        return tuple(unique_item_ids(owned.keys(), blacklist))


def select_item_source(bot: HostBot, settings: Settings) -> ItemSource:
    """Pick the item source for a bot according to settings and host capabilities."""
    if settings.item_source == "profile":
        return ProfileGamesSource(settings)
    if settings.item_source == "owned":
        return OwnedGamesSource(settings)
    if isinstance(bot, OwnedGamesProvider):
        return OwnedGamesSource(settings)
    return ProfileGamesSource(settings)


def fetch_items(source: ItemSource, bot: HostBot, blacklist: Optional[Iterable[int]] = None) -> Tuple[int, ...]:
    """Run a fetch, turning unexpected failures into FetchError."""
    try:
        return source.fetch(bot, blacklist or ())
    except FetchError:
        raise
    except Exception as exc:  # pylint: disable=broad-except
        raise FetchError(f"Games list retrieval failed: {exc}", classify_error(exc)) from exc
