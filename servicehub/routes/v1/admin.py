# servicehub/routes/v1/admin.py
"""
Admin routes - API v1

Endpoints:
    POST /broadcast                      → Announcement to every connected client
    GET /stats                           → Platform account counts
"""

import asyncio
import logging

from fastapi import APIRouter, Depends

from ...api.dependencies.auth import require_admin
from ...api.dependencies.services import get_notification_service, get_stats_service
from ...core.exceptions import DomainException, handle_domain_exception
from ...models.user import User
from ...schemas.admin import BroadcastRequest, BroadcastResponse, PlatformStatsResponse
from ...services.notification_service import NotificationService
from ...services.stats_service import StatsService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-v1"])


@router.post("/broadcast", response_model=BroadcastResponse)
async def broadcast_announcement(
    payload: BroadcastRequest,
    current_user: User = Depends(require_admin),
    notification_service: NotificationService = Depends(get_notification_service),
) -> BroadcastResponse:
    notification = await notification_service.announce(payload.title, payload.message)
    logger.info(f"Admin {current_user.id} broadcast '{payload.title}'")
    return BroadcastResponse(
        message="Announcement broadcast successfully",
        timestamp=notification["timestamp"],
    )


@router.get("/stats", response_model=PlatformStatsResponse)
async def get_admin_stats(
    current_user: User = Depends(require_admin),
    stats_service: StatsService = Depends(get_stats_service),
) -> PlatformStatsResponse:
    try:
        stats = await asyncio.to_thread(stats_service.platform_stats)
    except DomainException as e:
        handle_domain_exception(e)
    return PlatformStatsResponse(**stats)
