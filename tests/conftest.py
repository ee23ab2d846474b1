"""Shared fakes for the host and its collaborators."""

from __future__ import annotations

import asyncio
import random
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import pytest

from randomidle.config import Settings
from randomidle.errors import PublishError
from randomidle.host import BotConfigAttributeAdapter
from randomidle.manager import RotationManager


class FakeBotConfig:
    def __init__(self, games: Iterable[int] = ()) -> None:
        self.games_played_while_idle: Tuple[int, ...] = tuple(games)


class FakeBot:
    def __init__(
        self,
        name: str = "bot1",
        steam_id: int = 76561198000000001,
        games: Iterable[int] = (),
        config_path: Optional[Path] = None,
    ) -> None:
        self.name = name
        self.steam_id = steam_id
        self.bot_config = FakeBotConfig(games)
        self.config_path = config_path


class QueuedSource:
    """Returns the queued pools one fetch at a time; exceptions are raised."""

    def __init__(self, *results: Any) -> None:
        self.results: List[Any] = list(results)
        self.calls = 0

    def fetch(self, bot, blacklist: Iterable[int] = ()) -> Tuple[int, ...]:
        self.calls += 1
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        excluded = set(blacklist)
        return tuple(item for item in result if item not in excluded)


class RecordingAdapter(BotConfigAttributeAdapter):
    def __init__(self) -> None:
        self.calls: List[Tuple[str, List[int]]] = []

    def set_active_items(self, bot, items: Sequence[int]) -> None:
        self.calls.append((bot.name, list(items)))
        super().set_active_items(bot, items)


class RejectingAdapter:
    def __init__(self) -> None:
        self.calls = 0

    def set_active_items(self, bot, items: Sequence[int]) -> None:
        self.calls += 1
        raise PublishError("host refused")


class ManualSleeper:
    """Sleep replacement whose waits only end when advance() is awaited."""

    def __init__(self) -> None:
        self.waiters: List[Tuple[float, asyncio.Future]] = []

    async def __call__(self, seconds: float) -> None:
        future = asyncio.get_running_loop().create_future()
        self.waiters.append((seconds, future))
        await future

    @property
    def pending(self) -> int:
        return sum(1 for _, future in self.waiters if not future.done())

    async def settle(self) -> None:
        for _ in range(10):
            await asyncio.sleep(0)

    async def advance(self) -> None:
        """Finish every wait that is pending right now."""
        for _, future in list(self.waiters):
            if not future.done():
                future.set_result(None)
        await self.settle()


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(config_dir=tmp_path, client_api_keys=["sk-test"])


@pytest.fixture()
def sleeper() -> ManualSleeper:
    return ManualSleeper()


@pytest.fixture()
def adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture()
def make_manager(settings: Settings, sleeper: ManualSleeper, adapter: RecordingAdapter):
    def _make(source: Any, manager_adapter: Any = adapter, seed: int = 7) -> RotationManager:
        return RotationManager(
            settings,
            manager_adapter,
            source_factory=lambda bot, _settings: source,
            rng=random.Random(seed),
            sleep=sleeper,
        )

    return _make
