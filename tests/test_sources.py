"""Tests for games list retrieval."""

from __future__ import annotations

from typing import Any, Dict, Optional
from unittest.mock import Mock

import pytest
import requests

from conftest import FakeBot
from randomidle.config import Settings
from randomidle.errors import ErrorType, FetchError
from randomidle.sources import (
    OwnedGamesSource,
    ProfileGamesSource,
    extract_item_ids,
    fetch_items,
    games_list_element,
    select_item_source,
)

GAMES_PAGE = """
<html><body>
<div class="header">{&quot;appid&quot;:999,&quot;name&quot;:&quot;Not in list&quot;}</div>
<template id="gameslist_config" data-profile-gameslist="{&quot;rgGames&quot;:[{&quot;appid&quot;:730,&quot;name&quot;:&quot;Counter-Strike 2&quot;},{&quot;appid&quot;:440,&quot;name&quot;:&quot;Team Fortress 2&quot;},{&quot;appid&quot;:730,&quot;name&quot;:&quot;Counter-Strike 2&quot;},{&quot;appid&quot;:570,&quot;name&quot;:&quot;Dota 2&quot;}]}"></template>
</body></html>
"""


class OwnedGamesBot(FakeBot):
    def __init__(self, owned: Optional[Dict[int, str]], **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.owned = owned

    def get_owned_games(self) -> Optional[Dict[int, str]]:
        return self.owned


def _session_returning(text: str, status_code: int = 200) -> Mock:
    response = Mock()
    response.status_code = status_code
    response.text = text
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=response)
    else:
        response.raise_for_status.return_value = None
    session = Mock()
    session.get.return_value = response
    return session


def test_extract_item_ids_scans_games_list_element() -> None:
    assert extract_item_ids(GAMES_PAGE) == [730, 440, 730, 570]


def test_extract_item_ids_without_element_scans_page() -> None:
    page = '<script>var rgGames = [{"appid":10,"name":"Counter-Strike"},{"appid":20,"name":"TFC"}];</script>'
    assert extract_item_ids(page) == [10, 20]


def test_extract_item_ids_from_element_body() -> None:
    page = (
        '<div id="gameslist_config">{&quot;appid&quot;:10,&quot;name&quot;:&quot;Ten&quot;}</div>'
        '<div>{&quot;appid&quot;:99,&quot;name&quot;:&quot;Outside&quot;}</div>'
    )
    assert extract_item_ids(page) == [10]


def test_extract_item_ids_with_nested_elements() -> None:
    page = (
        '<div id="gameslist_config"><div class="inner">{"appid":1,"name":"A"}</div>'
        '<br/>{"appid":2,"name":"B"}</div>{"appid":3,"name":"C"}'
    )
    assert extract_item_ids(page) == [1, 2]


def test_extract_item_ids_unclosed_element_runs_to_end() -> None:
    page = '<p>{"appid":5,"name":"Before"}</p><div id=\'gameslist_config\'>{"appid":6,"name":"After"}'
    assert extract_item_ids(page) == [6]
    assert games_list_element("<html></html>") is None


def test_extract_item_ids_from_empty_page() -> None:
    assert extract_item_ids("<html></html>") == []


def test_profile_source_dedupes_and_filters(monkeypatch, settings: Settings) -> None:
    session = _session_returning(GAMES_PAGE)
    monkeypatch.setattr("randomidle.sources.create_requests_session", lambda _settings: session)
    bot = FakeBot(steam_id=76561198000000042)

    result = ProfileGamesSource(settings).fetch(bot, blacklist={440})

    assert result == (730, 570)
    url = session.get.call_args.args[0]
    assert url == "https://steamcommunity.com/profiles/76561198000000042/games"
    assert session.get.call_args.kwargs["timeout"] == settings.request_timeout


def test_profile_source_prefers_bot_session(monkeypatch, settings: Settings) -> None:
    def _fail(_settings):
        raise AssertionError("bot session should be used")

    monkeypatch.setattr("randomidle.sources.create_requests_session", _fail)
    bot = FakeBot()
    bot.web_session = _session_returning(GAMES_PAGE)

    assert ProfileGamesSource(settings).fetch(bot) == (730, 440, 570)


def test_profile_source_http_error(monkeypatch, settings: Settings) -> None:
    session = _session_returning("denied", status_code=403)
    monkeypatch.setattr("randomidle.sources.create_requests_session", lambda _settings: session)

    with pytest.raises(FetchError) as excinfo:
        ProfileGamesSource(settings).fetch(FakeBot())
    assert excinfo.value.error_type == ErrorType.AUTH_ERROR


def test_profile_source_timeout(monkeypatch, settings: Settings) -> None:
    session = Mock()
    session.get.side_effect = requests.exceptions.Timeout()
    monkeypatch.setattr("randomidle.sources.create_requests_session", lambda _settings: session)

    with pytest.raises(FetchError) as excinfo:
        ProfileGamesSource(settings).fetch(FakeBot())
    assert excinfo.value.error_type == ErrorType.NETWORK_ERROR


def test_owned_source_uses_host_api(settings: Settings) -> None:
    bot = OwnedGamesBot({730: "Counter-Strike 2", 440: "Team Fortress 2", 570: "Dota 2"})
    assert OwnedGamesSource(settings).fetch(bot, blacklist=[570]) == (730, 440)


def test_owned_source_without_capability(settings: Settings) -> None:
    with pytest.raises(FetchError) as excinfo:
        OwnedGamesSource(settings).fetch(FakeBot())
    assert excinfo.value.error_type == ErrorType.HOST_ERROR


def test_owned_source_no_response(settings: Settings) -> None:
    with pytest.raises(FetchError):
        OwnedGamesSource(settings).fetch(OwnedGamesBot(None))


def test_owned_source_empty_is_not_an_error(settings: Settings) -> None:
    assert OwnedGamesSource(settings).fetch(OwnedGamesBot({})) == ()


def test_select_item_source(settings: Settings) -> None:
    owned_bot = OwnedGamesBot({})
    assert isinstance(select_item_source(owned_bot, settings), OwnedGamesSource)
    assert isinstance(select_item_source(FakeBot(), settings), ProfileGamesSource)

    forced = settings.model_copy(update={"item_source": "profile"})
    assert isinstance(select_item_source(owned_bot, forced), ProfileGamesSource)


def test_fetch_items_wraps_unexpected_errors() -> None:
    class BrokenSource:
        def fetch(self, bot, blacklist=()):
            raise ValueError("bad payload")

    with pytest.raises(FetchError) as excinfo:
        fetch_items(BrokenSource(), FakeBot())
    assert excinfo.value.error_type == ErrorType.UNKNOWN_ERROR
