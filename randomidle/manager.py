"""Lifecycle handling and rotation for every bot the host runs."""

from __future__ import annotations

import asyncio
import random
from datetime import datetime
from threading import Lock
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from loguru import logger

from .allocator import allocate
from .bootstrap import load_fixed_items
from .config import RotationSettings, Settings, parse_rotation_settings
from .errors import FetchError, PublishError
from .host import ActiveItemsAdapter, HostBot
from .models import AccountStatus
from .scheduler import RotationScheduler, Sleeper
from .sources import ItemSource, fetch_items, select_item_source
from .state import AccountState, FixedItems, RotationStore
from .utils import log_account_event, log_debug

SourceFactory = Callable[[HostBot, Settings], ItemSource]
FixedLoader = Callable[[HostBot, Settings], FixedItems]


class RotationManager:
    """
    Owns the rotation state of all bots in the process.

    One instance is created when the plugin loads and every host event is
    routed through it. Bots never share state, so events for different bots
    may run concurrently.
    """

    def __init__(
        self,
        settings: Settings,
        adapter: Optional[ActiveItemsAdapter],
        store: Optional[RotationStore] = None,
        source_factory: SourceFactory = select_item_source,
        fixed_loader: FixedLoader = load_fixed_items,
        rng: Optional[random.Random] = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.adapter = adapter
        self.store = store or RotationStore()
        self.scheduler = RotationScheduler(self._tick, sleep=sleep)
        self._source_factory = source_factory
        self._fixed_loader = fixed_loader
        self._rng = rng
        self._bots: Dict[str, HostBot] = {}
        self._bots_lock = Lock()

    def init_account(self, bot: HostBot, properties: Optional[Mapping[str, Any]] = None) -> RotationSettings:
        """Read the bot's rotation options from its additional config properties."""
        rotation_settings = parse_rotation_settings(properties)
        self.store.set_settings(bot.name, rotation_settings)
        log_account_event(
            bot.name,
            f"Config: CycleInterval={rotation_settings.cycle_interval_minutes}min, "
            f"MaxGames={rotation_settings.max_games_played}, "
            f"Blacklist={len(rotation_settings.blacklist)} apps",
        )
        return rotation_settings

    async def on_login(self, bot: HostBot) -> bool:
        """
        Refresh the games pool, publish a first selection and arm the timer.

        Returns True when an active set was published.
        """
        name = bot.name
        if self.adapter is None:
            log_debug(self.settings, f"[{name}] No compatible host adapter, skipping rotation")
            return False

        rotation_settings = self.store.get_settings(name)
        if rotation_settings is None:
            log_account_event(name, "No configuration found, using defaults", "WARNING")
            rotation_settings = RotationSettings()
            self.store.set_settings(name, rotation_settings)

        # the first call reads the bot config file
        state = await asyncio.to_thread(
            self.store.get_or_init, name, lambda: self._fixed_loader(bot, self.settings)
        )
        with self._bots_lock:
            self._bots[name] = bot

        source = self._source_factory(bot, self.settings)
        try:
            pool = await asyncio.to_thread(fetch_items, source, bot, rotation_settings.blacklist)
        except FetchError as exc:
            log_account_event(
                name,
                f"Could not fetch games list ({exc.error_type.value}): {exc}; "
                f"keeping {len(state.pool)} cached games",
                "WARNING",
            )
            return False

        if not pool:
            log_account_event(name, "No games available to rotate")
            return False

        self.store.set_pool(name, pool)
        log_debug(self.settings, f"[{name}] Cached {len(pool)} games for rotation")

        published = await self.rotate(name) is not None

        if rotation_settings.rotation_enabled:
            self.scheduler.start(name, rotation_settings.cycle_interval_minutes)
        else:
            await self.scheduler.stop(name)
        return published

    async def on_disconnect(self, bot: HostBot, reason: Optional[Any] = None) -> None:
        """Stop rotating; cached games stay for the next login."""
        if await self.scheduler.stop(bot.name):
            log_account_event(bot.name, f"Disconnected ({reason}), rotation paused")

    async def on_destroy(self, bot: HostBot) -> None:
        """Forget everything about the bot."""
        await self.scheduler.stop(bot.name)
        with self._bots_lock:
            self._bots.pop(bot.name, None)
        if self.store.remove(bot.name) is not None:
            log_debug(self.settings, f"[{bot.name}] Rotation state removed")

    async def rotate(self, name: str) -> Optional[List[int]]:
        """
        Pick and publish a new active set for ``name``.

        Returns the published list, or None when nothing was published.
        Raises KeyError for unknown bots.
        """
        state = self.store.get(name)
        if state is None:
            raise KeyError(name)
        if not state.pool:
            return None

        with self._bots_lock:
            bot = self._bots.get(name)
        if bot is None:
            return None

        items = allocate(state.fixed_items, state.pool, state.settings.max_games_played, self._rng)
        if not items:
            return None
        if not await self.publish(state, bot, items):
            return None
        return items

    async def publish(self, state: AccountState, bot: HostBot, items: Sequence[int]) -> bool:
        """Hand the active set to the host; failures are logged, never raised."""
        if self.adapter is None:
            return False

        async with state.publish_lock:
            try:
                self.adapter.set_active_items(bot, items)
            except Exception as exc:  # pylint: disable=broad-except
                error = exc if isinstance(exc, PublishError) else PublishError(str(exc))
                if not state.publish_warned:
                    state.publish_warned = True
                    log_account_event(
                        state.name,
                        f"Could not set games played while idle, host may be incompatible: {error}",
                        "WARNING",
                    )
                else:
                    log_debug(self.settings, f"[{state.name}] Publish failed again: {error}")
                return False

            state.active_items = list(items)
            state.rotations += 1
            state.last_rotated_at = datetime.now()

        log_account_event(state.name, f"Set {len(items)} random games")
        return True

    async def shutdown(self) -> None:
        await self.scheduler.stop_all()

    def status(self, name: str) -> Optional[AccountStatus]:
        state = self.store.get(name)
        if state is None:
            return None
        return self._build_status(state)

    def statuses(self) -> List[AccountStatus]:
        return [self._build_status(state) for state in self.store.snapshot().values()]

    def _build_status(self, state: AccountState) -> AccountStatus:
        return AccountStatus(
            name=state.name,
            fixed_items=list(state.fixed_items),
            fixed_source=state.fixed_source,
            pool_size=len(state.pool),
            active_items=list(state.active_items),
            cycle_interval_minutes=state.settings.cycle_interval_minutes,
            max_games_played=state.settings.max_games_played,
            blacklist_size=len(state.settings.blacklist),
            timer_running=self.scheduler.is_running(state.name),
            rotations=state.rotations,
            last_rotated_at=state.last_rotated_at,
        )

    async def _tick(self, name: str) -> None:
        try:
            await self.rotate(name)
        except KeyError:
            log_debug(self.settings, f"[{name}] Rotation tick for a removed bot")
