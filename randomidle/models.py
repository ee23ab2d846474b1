"""Shared types and Pydantic models for the status API."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field

# Steam app ids are unsigned 32-bit integers.
MAX_ITEM_ID = 0xFFFFFFFF

ItemId = Annotated[int, Field(ge=0, le=MAX_ITEM_ID)]


class AccountStatus(BaseModel):
    name: str
    fixed_items: List[int]
    fixed_source: str
    pool_size: int
    active_items: List[int]
    cycle_interval_minutes: int
    max_games_played: int
    blacklist_size: int
    timer_running: bool
    rotations: int = 0
    last_rotated_at: Optional[datetime] = None


class AccountStatusList(BaseModel):
    object: str = "list"
    data: List[AccountStatus]


class RotateResponse(BaseModel):
    name: str
    active_items: List[int]
    rotated_at: datetime = Field(default_factory=datetime.now)
