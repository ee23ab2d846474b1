"""Accessors for the objects create_app attaches to the status API."""

from __future__ import annotations

from fastapi import Request

from .config import Settings
from .manager import RotationManager


def get_app_settings(request: Request) -> Settings:
    """Plugin settings the API was created with (may differ from the manager's)."""
    return request.app.state.settings  # type: ignore[attr-defined]


def get_manager(request: Request) -> RotationManager:
    """The RotationManager whose bots the API reports on."""
    return request.app.state.manager  # type: ignore[attr-defined]
