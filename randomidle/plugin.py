"""Plugin entry point wired to the bot host's lifecycle events."""

from __future__ import annotations

import asyncio
import functools
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar

from loguru import logger

from .config import Settings, get_settings
from .host import HostBot, resolve_adapter
from .manager import RotationManager
from .utils import configure_logging

__version__ = "1.2.0"

T = TypeVar("T")


def failure_boundary(handler: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[Optional[T]]]:
    """Log and swallow anything a host event handler raises."""

    @functools.wraps(handler)
    async def wrapper(self: "RandomGamesPlayedWhileIdlePlugin", *args: Any, **kwargs: Any) -> Optional[T]:
        try:
            return await handler(self, *args, **kwargs)
        except asyncio.CancelledError:
            raise
        except Exception:  # pylint: disable=broad-except
            logger.exception(f"{self.name}: {handler.__name__} failed")
            return None

    return wrapper


class RandomGamesPlayedWhileIdlePlugin:
    """Rotates a random selection of owned games into GamesPlayedWhileIdle."""

    name = "RandomGamesPlayedWhileIdle"
    version = __version__

    def __init__(self, settings: Optional[Settings] = None, manager: Optional[RotationManager] = None) -> None:
        self.settings = settings or get_settings()
        self.manager = manager
        self._status_task: Optional[asyncio.Task] = None

    @failure_boundary
    async def on_loaded(self, host_version: Optional[str] = None) -> None:
        configure_logging(self.settings)

        if self.manager is None:
            adapter = resolve_adapter(host_version)
            if adapter is None:
                logger.error(
                    f"{self.name}: host version {host_version or 'unknown'} exposes no way to set "
                    "GamesPlayedWhileIdle; rotation is disabled"
                )
            else:
                logger.debug(f"{self.name}: using {type(adapter).__name__} for host {host_version}")
            self.manager = RotationManager(self.settings, adapter)

        if self.settings.status_api_enabled:
            from .app import start_status_server

            self._status_task = start_status_server(self.manager, self.settings)

        logger.info(f"{self.name} has been loaded!")

    @failure_boundary
    async def on_bot_init_modules(self, bot: HostBot, additional_properties: Optional[Mapping[str, Any]] = None) -> None:
        self._require_manager().init_account(bot, additional_properties)

    @failure_boundary
    async def on_bot_init(self, bot: HostBot) -> None:
        return None

    @failure_boundary
    async def on_bot_logged_on(self, bot: HostBot) -> None:
        await self._require_manager().on_login(bot)

    @failure_boundary
    async def on_bot_disconnected(self, bot: HostBot, reason: Optional[Any] = None) -> None:
        await self._require_manager().on_disconnect(bot, reason)

    @failure_boundary
    async def on_bot_destroy(self, bot: HostBot) -> None:
        await self._require_manager().on_destroy(bot)

    @failure_boundary
    async def on_unloaded(self) -> None:
        if self.manager is not None:
            await self.manager.shutdown()
        if self._status_task is not None:
            self._status_task.cancel()
            try:
                await self._status_task
            except asyncio.CancelledError:
                pass
            self._status_task = None
        logger.info(f"{self.name} has been unloaded")

    def _require_manager(self) -> RotationManager:
        if self.manager is None:
            raise RuntimeError(f"{self.name} received a bot event before on_loaded")
        return self.manager
