"""Status routes - system and per-user copy trading status."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status

from alphacopy.application.trading import CopyTradingService
from alphacopy.domain.trading.exceptions import UserNotFoundError
from alphacopy.presentation.api.dependencies import get_copy_trading_service

router = APIRouter(tags=["Status"])

ServiceDep = Annotated[CopyTradingService, Depends(get_copy_trading_service)]


@router.get(
    "/status",
    summary="System status",
    description="Activity source health, tracked wallets, queue depth and pipeline counters",
)
async def system_status(service: ServiceDep) -> dict[str, Any]:
    return await service.get_system_status()


@router.get(
    "/users/{user_id}/status",
    summary="User status",
    description="Settings, subscriptions, rate-limit counters and recent trades of one user",
)
async def user_status(user_id: int, service: ServiceDep) -> dict[str, Any]:
    try:
        return await service.get_user_status(user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
