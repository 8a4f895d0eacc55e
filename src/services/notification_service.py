"""Notification storage used by messaging and the notification endpoints."""

import logging
from typing import Any
from uuid import UUID

from src.api.middleware.error_handler import InvalidRequestError
from src.core.supabase import get_supabase_client
from src.models.notification import NotificationType
from src.schemas.notification import NotificationResponse

logger = logging.getLogger(__name__)


class NotificationService:
    """Service for creating and reading in-app notifications."""

    DEFAULT_PAGE_SIZE = 20

    def __init__(self) -> None:
        """Initialize notification service with Supabase client."""
        self.client = get_supabase_client()

    async def create_notification(
        self,
        profile_id: UUID,
        notification_type: NotificationType,
        title: str,
        body: str | None = None,
        link: str | None = None,
    ) -> dict[str, Any]:
        """Store a notification for a profile.

        Args:
            profile_id: Recipient profile ID.
            notification_type: What produced the notification.
            title: Short title.
            body: Optional preview text.
            link: Optional deep link into the app.

        Returns:
            dict: The created notification row.
        """
        notification_data = {
            "profile_id": str(profile_id),
            "type": notification_type.value,
            "title": title,
            "body": body,
            "link": link,
        }

        response = self.client.table("notifications").insert(notification_data).execute()
        logger.debug("Created %s notification for profile %s", notification_type.value, profile_id)

        return response.data[0]

    async def list_notifications(
        self,
        profile_id: UUID,
        cursor: UUID | None = None,
        limit: int | None = None,
    ) -> tuple[list[NotificationResponse], str | None, bool]:
        """List a profile's notifications, newest first.

        Rows are ordered by (created_at, id) so notifications sharing a
        timestamp are neither skipped nor repeated across pages.

        Args:
            profile_id: Recipient profile ID.
            cursor: ID of the last notification of the previous page.
            limit: Maximum results to return.

        Returns:
            tuple: (notifications, next_cursor, has_more)

        Raises:
            InvalidRequestError: If the cursor does not name one of the
                profile's notifications.
        """
        page_size = limit or self.DEFAULT_PAGE_SIZE

        query = (
            self.client.table("notifications")
            .select("*")
            .eq("profile_id", str(profile_id))
            .order("created_at", desc=True)
            .order("id", desc=True)
            .limit(page_size + 1)
        )

        if cursor:
            anchor = await self._get_cursor_anchor(profile_id, cursor)
            created_at = anchor["created_at"]
            query = query.or_(
                f'created_at.lt."{created_at}",'
                f'and(created_at.eq."{created_at}",id.lt.{anchor["id"]})'
            )

        response = query.execute()
        rows = response.data or []

        has_more = len(rows) > page_size
        if has_more:
            rows = rows[:page_size]

        next_cursor = str(rows[-1]["id"]) if has_more and rows else None

        notifications = [NotificationResponse(**row) for row in rows]
        return notifications, next_cursor, has_more

    async def _get_cursor_anchor(self, profile_id: UUID, cursor: UUID) -> dict[str, Any]:
        response = (
            self.client.table("notifications")
            .select("id, created_at")
            .eq("id", str(cursor))
            .eq("profile_id", str(profile_id))
            .maybe_single()
            .execute()
        )

        if not response or not response.data:
            raise InvalidRequestError("Invalid cursor")
        return response.data

    async def count_unread(self, profile_id: UUID) -> int:
        """Count unread notifications for a profile."""
        response = (
            self.client.table("notifications")
            .select("id", count="exact")
            .eq("profile_id", str(profile_id))
            .eq("read", False)
            .execute()
        )

        return response.count or 0

    async def mark_read(
        self,
        profile_id: UUID,
        notification_ids: list[UUID] | None = None,
    ) -> int:
        """Mark notifications read.

        Only notifications owned by the profile are touched, so foreign
        IDs in the list are ignored rather than rejected.

        Args:
            profile_id: Owner profile ID.
            notification_ids: Specific notifications to mark. None marks all.

        Returns:
            int: Number of notifications updated.
        """
        query = (
            self.client.table("notifications")
            .update({"read": True})
            .eq("profile_id", str(profile_id))
            .eq("read", False)
        )

        if notification_ids is not None:
            if not notification_ids:
                return 0
            query = query.in_("id", [str(nid) for nid in notification_ids])

        response = query.execute()
        return len(response.data or [])
