"""Router exposing per-bot rotation status and manual rotation."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..auth import authenticate_client
from ..dependencies import get_manager
from ..manager import RotationManager
from ..models import AccountStatus, AccountStatusList, RotateResponse

router = APIRouter(prefix="/api/rotation", dependencies=[Depends(authenticate_client)])


@router.get("", response_model=AccountStatusList)
async def list_accounts(manager: RotationManager = Depends(get_manager)) -> AccountStatusList:
    """List rotation state of every known bot."""
    return AccountStatusList(data=manager.statuses())


@router.get("/{name}", response_model=AccountStatus)
async def get_account(name: str, manager: RotationManager = Depends(get_manager)) -> AccountStatus:
    status = manager.status(name)
    if status is None:
        raise HTTPException(status_code=404, detail=f"Bot '{name}' not found.")
    return status


@router.post("/{name}/rotate", response_model=RotateResponse)
async def rotate_account(name: str, manager: RotationManager = Depends(get_manager)) -> RotateResponse:
    """Publish a fresh random selection right away."""
    if manager.adapter is None:
        raise HTTPException(status_code=503, detail="No compatible host adapter available.")

    state = manager.store.get(name)
    if state is None:
        raise HTTPException(status_code=404, detail=f"Bot '{name}' not found.")
    if not state.pool:
        raise HTTPException(status_code=409, detail=f"Bot '{name}' has no games to rotate.")

    try:
        items = await manager.rotate(name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Bot '{name}' not found.")

    if items is None:
        raise HTTPException(status_code=502, detail=f"Host did not accept new games for '{name}'.")
    return RotateResponse(name=name, active_items=items)
