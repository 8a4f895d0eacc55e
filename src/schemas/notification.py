"""Notification Pydantic schemas for API request/response models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.models.notification import NotificationType


class NotificationResponse(BaseModel):
    """Schema for notification API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Notification unique identifier")
    type: NotificationType = Field(description="What produced the notification")
    title: str = Field(description="Short title")
    body: str | None = Field(default=None, description="Preview text")
    link: str | None = Field(default=None, description="Deep link into the app")
    read: bool = Field(default=False, description="Whether the notification was read")
    created_at: datetime = Field(description="Creation timestamp")


class NotificationListResponse(BaseModel):
    """Schema for paginated notification list response."""

    model_config = ConfigDict(from_attributes=True)

    notifications: list[NotificationResponse] = Field(description="Notifications, newest first")
    next_cursor: str | None = Field(default=None, description="ID to pass as cursor for the next page")
    has_more: bool = Field(default=False, description="Whether more results exist")


class NotificationMarkRequest(BaseModel):
    """Schema for marking notifications read."""

    notification_ids: list[UUID] | None = Field(default=None, description="Specific notifications to mark")
    mark_all_read: bool = Field(default=False, description="Mark every unread notification")
