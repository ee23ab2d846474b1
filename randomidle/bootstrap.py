"""Helpers for loading the fixed idle games of a bot."""

from __future__ import annotations

import json
from typing import Optional

from loguru import logger

from .config import Settings
from .host import GAMES_PLAYED_WHILE_IDLE_KEY, HostBot, bot_config_path, read_configured_items
from .state import FixedItems
from .utils import unique_item_ids

DISK = "disk"
MEMORY = "memory"


def read_fixed_items_from_disk(bot: HostBot, settings: Settings) -> Optional[FixedItems]:
    """
    Read GamesPlayedWhileIdle from the bot's config file.

    The file holds what the user configured, unlike the in-memory config
    which may still carry a list this plugin published in an earlier run.
    Returns None when the file cannot be used.
    """
    config_file = bot_config_path(bot, settings.config_dir)

    try:
        with config_file.open("r", encoding="utf-8") as file:
            loaded = json.load(file)
    except FileNotFoundError:
        logger.warning(f"[{bot.name}] Config file {config_file} not found.")
        return None
    except (OSError, ValueError) as exc:
        logger.warning(f"[{bot.name}] Error loading {config_file}: {exc}")
        return None

    if not isinstance(loaded, dict):
        logger.warning(f"[{bot.name}] {config_file} should contain a JSON object.")
        return None

    raw = loaded.get(GAMES_PLAYED_WHILE_IDLE_KEY, [])
    if not isinstance(raw, list):
        logger.warning(f"[{bot.name}] {GAMES_PLAYED_WHILE_IDLE_KEY} in {config_file} is not a list.")
        return None

    return FixedItems(items=tuple(unique_item_ids(raw)), source=DISK)


def load_fixed_items(bot: HostBot, settings: Settings) -> FixedItems:
    """Load the fixed idle games, preferring the config file over memory."""
    fixed = read_fixed_items_from_disk(bot, settings)
    if fixed is not None:
        logger.info(f"[{bot.name}] Loaded {len(fixed.items)} fixed games from config file")
        return fixed

    # May include games written by this plugin before a reload.
    fixed = FixedItems(items=tuple(read_configured_items(bot)), source=MEMORY)
    logger.warning(
        f"[{bot.name}] Using {len(fixed.items)} fixed games from in-memory config; "
        "these may include games set by a previous rotation"
    )
    return fixed
