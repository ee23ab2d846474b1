"""Bearer key check guarding the rotation status API."""

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import Settings
from .dependencies import get_app_settings

security = HTTPBearer(auto_error=False)

STATUS_API_DISABLED = "Rotation status API has no keys; set CLIENT_API_KEYS to enable it."


def authenticate_client(
    settings: Settings = Depends(get_app_settings),
    auth: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> None:
    """
    Allow the request only with one of the CLIENT_API_KEYS as bearer token.

    Rotation state names every bot in the process, so the API stays closed
    (503) until at least one key is configured.
    """
    if not settings.client_api_keys:
        raise HTTPException(status_code=503, detail=STATUS_API_DISABLED)

    if not auth or not auth.credentials:
        raise HTTPException(
            status_code=401,
            detail="Bearer key required to read rotation state.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not any(secrets.compare_digest(auth.credentials.encode(), key.encode()) for key in settings.client_api_keys):
        raise HTTPException(status_code=403, detail="Unknown rotation status API key.")
