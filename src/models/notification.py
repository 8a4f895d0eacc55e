"""Notification model type definitions for database operations."""

from datetime import datetime
from enum import Enum
from typing import TypedDict
from uuid import UUID


class NotificationType(str, Enum):
    """Notification type values matching database enum."""

    MESSAGE = "MESSAGE"
    CONNECTION_REQUEST = "CONNECTION_REQUEST"
    CONNECTION_ACCEPTED = "CONNECTION_ACCEPTED"
    COMPANY_INVITE = "COMPANY_INVITE"


class Notification(TypedDict):
    """Notifications table row representation."""

    id: UUID
    profile_id: UUID
    type: NotificationType
    title: str
    body: str | None
    link: str | None
    read: bool
    created_at: datetime


class NotificationCreate(TypedDict, total=False):
    """Data required to create a notification."""

    profile_id: UUID
    type: NotificationType
    title: str
    body: str | None
    link: str | None
