"""Per-bot runtime state shared by lifecycle handlers and rotation timers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from datetime import datetime
from threading import Lock
from typing import Callable, Dict, List, Optional, Tuple

from .config import RotationSettings


@dataclass
class FixedItems:
    """Fixed idle games and where they were read from ("disk" or "memory")."""

    items: Tuple[int, ...]
    source: str


@dataclass
class AccountState:
    """Holds the data one bot needs between rotations."""

    name: str
    fixed_items: Tuple[int, ...]
    fixed_source: str
    settings: RotationSettings = field(default_factory=RotationSettings)
    pool: Tuple[int, ...] = ()
    active_items: List[int] = field(default_factory=list)
    rotations: int = 0
    last_rotated_at: Optional[datetime] = None
    publish_warned: bool = False
    publish_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)


class RotationStore:
    """Thread-safe mapping from bot name to AccountState."""

    def __init__(self) -> None:
        self._accounts: Dict[str, AccountState] = {}
        self._settings: Dict[str, RotationSettings] = {}
        self._lock = Lock()

    def get_or_init(self, name: str, fixed_loader: Callable[[], FixedItems]) -> AccountState:
        """
        Return the state for ``name``, creating it on first use.

        ``fixed_loader`` is only called when no entry exists, so the fixed
        items of an existing entry are never replaced. It runs without the
        store lock held; if an entry appeared meanwhile, that entry wins.
        """
        with self._lock:
            state = self._accounts.get(name)
        if state is not None:
            return state

        fixed = fixed_loader()

        with self._lock:
            state = self._accounts.get(name)
            if state is None:
                state = AccountState(
                    name=name,
                    fixed_items=tuple(fixed.items),
                    fixed_source=fixed.source,
                    settings=self._settings.get(name, RotationSettings()),
                )
                self._accounts[name] = state
            return state

    def set_pool(self, name: str, pool: Tuple[int, ...]) -> None:
        with self._lock:
            state = self._accounts.get(name)
            if state is None:
                raise KeyError(name)
            state.pool = tuple(pool)

    def set_settings(self, name: str, settings: RotationSettings) -> None:
        """Record settings for a bot, whether or not it has logged on yet."""
        with self._lock:
            self._settings[name] = settings
            state = self._accounts.get(name)
            if state is not None:
                state.settings = settings

    def get_settings(self, name: str) -> Optional[RotationSettings]:
        with self._lock:
            return self._settings.get(name)

    def get(self, name: str) -> Optional[AccountState]:
        with self._lock:
            return self._accounts.get(name)

    def remove(self, name: str) -> Optional[AccountState]:
        with self._lock:
            self._settings.pop(name, None)
            return self._accounts.pop(name, None)

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._accounts)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._accounts

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)

    def snapshot(self) -> Dict[str, AccountState]:
        """Copies of every entry, taken under one lock acquisition."""
        with self._lock:
            return {
                name: replace(state, active_items=list(state.active_items))
                for name, state in sorted(self._accounts.items())
            }
