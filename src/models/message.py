"""Message model type definitions for database operations."""

from datetime import datetime
from typing import TypedDict
from uuid import UUID


class Message(TypedDict):
    """Messages table row representation.

    Messages are append-only. The bigint id is assigned by the database in
    insertion order and breaks ties between equal created_at values.
    Only the read flag is ever updated.
    """

    id: int
    conversation_id: UUID
    sender_id: UUID
    receiver_id: UUID
    content: str
    read: bool
    created_at: datetime
