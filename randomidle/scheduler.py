"""Per-bot recurring rotation timers."""

from __future__ import annotations

import asyncio
from threading import Lock
from typing import Awaitable, Callable, Dict, List, Optional

from loguru import logger

Tick = Callable[[str], Awaitable[None]]
Sleeper = Callable[[float], Awaitable[None]]

SECONDS_PER_MINUTE = 60


class RotationScheduler:
    """
    Runs one supervised background task per bot.

    Each task sleeps for the interval and then awaits ``tick(name)``. Ticks of
    one bot never overlap because the task only sleeps again once the previous
    tick has returned. A failing tick is logged and the loop keeps going.
    """

    def __init__(self, tick: Tick, sleep: Sleeper = asyncio.sleep) -> None:
        self._tick = tick
        self._sleep = sleep
        self._tasks: Dict[str, asyncio.Task] = {}
        self._lock = Lock()

    def start(self, name: str, interval_minutes: int) -> asyncio.Task:
        """Start (or restart) the timer for ``name``. Must run inside the event loop."""
        if interval_minutes <= 0:
            raise ValueError(f"interval_minutes must be positive, got {interval_minutes}")

        task = asyncio.get_running_loop().create_task(
            self._run(name, interval_minutes * SECONDS_PER_MINUTE),
            name=f"rotation:{name}",
        )
        with self._lock:
            previous = self._tasks.get(name)
            self._tasks[name] = task
        if previous is not None and not previous.done():
            previous.cancel()
            logger.debug(f"[{name}] Replaced running rotation timer")
        logger.info(f"[{name}] Rotation timer started, cycling every {interval_minutes} min")
        return task

    async def stop(self, name: str) -> bool:
        """
        Cancel the timer for ``name`` and wait for it to finish.

        Returns False when no timer was running.
        """
        with self._lock:
            task = self._tasks.pop(name, None)
        if task is None:
            return False

        task.cancel()
        if task is not asyncio.current_task():
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info(f"[{name}] Rotation timer stopped")
        return True

    async def stop_all(self) -> None:
        for name in self.running():
            await self.stop(name)

    def is_running(self, name: str) -> bool:
        with self._lock:
            task = self._tasks.get(name)
        return task is not None and not task.done()

    def running(self) -> List[str]:
        with self._lock:
            return sorted(name for name, task in self._tasks.items() if not task.done())

    def task(self, name: str) -> Optional[asyncio.Task]:
        with self._lock:
            return self._tasks.get(name)

    async def _run(self, name: str, interval_seconds: float) -> None:
        while True:
            await self._sleep(interval_seconds)
            try:
                await self._tick(name)
            except asyncio.CancelledError:
                raise
            except Exception:  # pylint: disable=broad-except
                logger.exception(f"[{name}] Rotation tick failed")
