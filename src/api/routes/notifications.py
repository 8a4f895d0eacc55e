"""Notification API routes."""

from uuid import UUID

from fastapi import APIRouter, Query

from src.api.deps import CurrentProfile
from src.schemas.common import CountResponse
from src.schemas.notification import NotificationListResponse, NotificationMarkRequest
from src.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List notifications",
    description="Returns the user's notifications, newest first, with cursor pagination.",
)
async def list_notifications(
    profile: CurrentProfile,
    cursor: UUID | None = Query(default=None, description="ID of the last notification of the previous page"),
    limit: int = Query(default=20, ge=1, le=100, description="Page size"),
) -> NotificationListResponse:
    """List the requester's notifications."""
    service = NotificationService()
    notifications, next_cursor, has_more = await service.list_notifications(
        UUID(profile["id"]), cursor=cursor, limit=limit
    )

    return NotificationListResponse(
        notifications=notifications,
        next_cursor=next_cursor,
        has_more=has_more,
    )


@router.get(
    "/unread-count",
    response_model=CountResponse,
    summary="Unread notification count",
)
async def get_unread_count(profile: CurrentProfile) -> CountResponse:
    """Count unread notifications for the badge."""
    service = NotificationService()
    return CountResponse(count=await service.count_unread(UUID(profile["id"])))


@router.patch(
    "",
    response_model=CountResponse,
    summary="Mark notifications read",
    description="Marks the listed notifications, or all of them with mark_all_read, as read.",
)
async def mark_notifications_read(
    data: NotificationMarkRequest,
    profile: CurrentProfile,
) -> CountResponse:
    """Mark notifications read and return how many changed."""
    service = NotificationService()
    ids = None if data.mark_all_read else (data.notification_ids or [])
    updated = await service.mark_read(UUID(profile["id"]), ids)
    return CountResponse(count=updated)
