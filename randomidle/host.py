"""Interfaces the plugin expects from the bot host."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

from loguru import logger
from requests import Session

from .errors import PublishError
from .utils import unique_item_ids

GAMES_PLAYED_WHILE_IDLE_FIELD = "games_played_while_idle"
GAMES_PLAYED_WHILE_IDLE_KEY = "GamesPlayedWhileIdle"


class HostBotConfig(Protocol):
    games_played_while_idle: Sequence[int]


class HostBot(Protocol):
    """The subset of a host bot object this plugin relies on."""

    name: str
    steam_id: int
    bot_config: HostBotConfig


@runtime_checkable
class OwnedGamesProvider(Protocol):
    def get_owned_games(self) -> Optional[Mapping[int, str]]:
        ...


class ActiveItemsAdapter(Protocol):
    """Writes the active set into the host's configuration for one bot."""

    def set_active_items(self, bot: HostBot, items: Sequence[int]) -> None:
        ...


class BotConfigAttributeAdapter:
    """Hosts that expose the idle games list as a mutable config attribute."""

    name = "bot_config_attribute"

    def set_active_items(self, bot: HostBot, items: Sequence[int]) -> None:
        config = getattr(bot, "bot_config", None)
        if config is None or not hasattr(config, GAMES_PLAYED_WHILE_IDLE_FIELD):
            raise PublishError(f"bot config of {bot.name} has no {GAMES_PLAYED_WHILE_IDLE_FIELD} field")
        setattr(config, GAMES_PLAYED_WHILE_IDLE_FIELD, tuple(items))


class SetterMethodAdapter:
    """Hosts that only accept the idle games list through a setter method."""

    name = "setter_method"

    def set_active_items(self, bot: HostBot, items: Sequence[int]) -> None:
        setter: Optional[Callable[[List[int]], Any]] = getattr(bot, "set_games_played_while_idle", None)
        if setter is None:
            raise PublishError(f"bot {bot.name} has no set_games_played_while_idle method")
        result = setter(list(items))
        if result is False:
            raise PublishError(f"host rejected the idle games list for {bot.name}")


# Host major version -> adapter factory.
ADAPTERS: Dict[int, Callable[[], ActiveItemsAdapter]] = {
    5: SetterMethodAdapter,
    6: BotConfigAttributeAdapter,
}


def resolve_adapter(host_version: Optional[str]) -> Optional[ActiveItemsAdapter]:
    """Pick the adapter matching the host's major version, or None."""
    if not host_version:
        return None
    try:
        major = int(str(host_version).split(".", 1)[0])
    except ValueError:
        logger.warning(f"Unrecognised host version {host_version!r}")
        return None
    factory = ADAPTERS.get(major)
    return factory() if factory else None


def read_configured_items(bot: HostBot) -> List[int]:
    """Return the fixed idle games from the host's in-memory bot config."""
    config = getattr(bot, "bot_config", None)
    values = getattr(config, GAMES_PLAYED_WHILE_IDLE_FIELD, None) or ()
    return unique_item_ids(values)


def bot_config_path(bot: HostBot, config_dir: Path) -> Path:
    path = getattr(bot, "config_path", None)
    if path:
        return Path(path)
    return config_dir / f"{bot.name}.json"


def bot_web_session(bot: HostBot) -> Optional[Session]:
    return getattr(bot, "web_session", None)
