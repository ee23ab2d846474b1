"""Plugin configuration and per-bot settings helpers."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, FrozenSet, List, Literal, Mapping, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigParseError
from .models import ItemId

CYCLE_INTERVAL_KEY = "RandomGamesPlayedWhileIdleCycleIntervalMinutes"
MAX_GAMES_PLAYED_KEY = "RandomGamesPlayedWhileIdleMaxGamesPlayed"
BLACKLIST_KEY = "RandomGamesPlayedWhileIdleBlacklist"

# Steam refuses to idle more than this many games at once.
MAX_GAMES_PLAYED_LIMIT = 32
DEFAULT_CYCLE_INTERVAL_MINUTES = 0


class Settings(BaseModel):
    """Process-wide plugin configuration."""

    config_dir: Path = Field(default=Path("./config"), description="Directory holding <bot>.json files")
    item_source: Literal["auto", "profile", "owned"] = Field(default="auto")
    request_timeout: float = Field(default=30.0, gt=0)
    debug_mode: bool = Field(default=False)
    http_proxy: Optional[str] = Field(default=None)
    https_proxy: Optional[str] = Field(default=None)
    no_proxy: Optional[str] = Field(default=None)
    status_api_enabled: bool = Field(default=False)
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8002)
    client_api_keys: List[str] = Field(default_factory=list, description="Comma separated CLIENT_API_KEYS value")

    @field_validator("client_api_keys")
    @classmethod
    def _strip_keys(cls, value: List[str]) -> List[str]:
        return [key.strip() for key in value if key.strip()]

    @property
    def proxies(self) -> dict[str, Optional[str]]:
        return {
            "http": self.http_proxy,
            "https": self.https_proxy,
            "no_proxy": self.no_proxy,
        }


class RotationSettings(BaseModel):
    """Per-bot rotation options read from the host's additional config properties."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    cycle_interval_minutes: int = Field(
        default=DEFAULT_CYCLE_INTERVAL_MINUTES, ge=0, alias=CYCLE_INTERVAL_KEY
    )
    max_games_played: int = Field(
        default=MAX_GAMES_PLAYED_LIMIT, ge=1, le=MAX_GAMES_PLAYED_LIMIT, alias=MAX_GAMES_PLAYED_KEY
    )
    blacklist: FrozenSet[ItemId] = Field(default_factory=frozenset, alias=BLACKLIST_KEY)

    @property
    def rotation_enabled(self) -> bool:
        return self.cycle_interval_minutes > 0


def parse_rotation_settings(properties: Optional[Mapping[str, Any]]) -> RotationSettings:
    """
    Build RotationSettings from raw config properties.

    Each key is validated on its own: a malformed value is reported and that
    field falls back to its default while the other fields are still applied.
    """
    if not properties:
        return RotationSettings()

    accepted: dict[str, Any] = {}
    for field_name, field in RotationSettings.model_fields.items():
        key = field.alias or field_name
        if key not in properties:
            continue

        raw = properties[key]
        try:
            RotationSettings.model_validate({key: raw})
        except ValidationError as exc:
            error = ConfigParseError(key, raw, exc.errors()[0]["msg"])
            default = field.get_default(call_default_factory=True)
            logger.warning(f"{error}; falling back to default {default!r}")
            continue
        accepted[key] = raw

    return RotationSettings.model_validate(accepted)


@lru_cache()
def get_settings() -> Settings:
    """Load settings from environment variables."""

    import os
    from dotenv import load_dotenv

    load_dotenv()

    def _split_env_list(raw: Optional[str]) -> List[str]:
        if not raw:
            return []
        return [item.strip() for item in raw.split(",") if item.strip()]

    return Settings(
        config_dir=Path(os.getenv("RANDOMIDLE_CONFIG_DIR", "./config")),
        item_source=os.getenv("RANDOMIDLE_ITEM_SOURCE", "auto").lower(),
        request_timeout=float(os.getenv("REQUEST_TIMEOUT", "30")),
        debug_mode=os.getenv("DEBUG_MODE", "false").lower() == "true",
        http_proxy=os.getenv("HTTP_PROXY"),
        https_proxy=os.getenv("HTTPS_PROXY"),
        no_proxy=os.getenv("NO_PROXY"),
        status_api_enabled=os.getenv("STATUS_API_ENABLED", "false").lower() == "true",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8002")),
        client_api_keys=_split_env_list(os.getenv("CLIENT_API_KEYS")),
    )
