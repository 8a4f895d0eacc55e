"""Message Pydantic schemas for API request/response models."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.profile import ParticipantProfile


class MessageCreate(BaseModel):
    """Schema for sending a message.

    Trimming and length rules are applied by MessageService so that
    blank content is reported as an invalid request.
    """

    model_config = ConfigDict(from_attributes=True)

    content: str = Field(..., description="Message content")


class MessageResponse(BaseModel):
    """Schema for message API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Message identifier, increasing in insertion order")
    conversation_id: UUID = Field(description="Parent conversation ID")
    sender_id: UUID = Field(description="Profile ID of the sender")
    receiver_id: UUID = Field(description="Profile ID of the receiver")
    content: str = Field(description="Message content")
    read: bool = Field(default=False, description="Whether the receiver has read the message")
    created_at: datetime = Field(description="Creation timestamp")
    sender: ParticipantProfile | None = Field(default=None, description="Sender display fields")

    @classmethod
    def from_row(
        cls,
        row: dict[str, Any],
        sender: ParticipantProfile | None = None,
    ) -> "MessageResponse":
        """Build from a messages row."""
        return cls(
            id=row["id"],
            conversation_id=row["conversation_id"],
            sender_id=row["sender_id"],
            receiver_id=row["receiver_id"],
            content=row["content"],
            read=row.get("read", False),
            created_at=row["created_at"],
            sender=sender,
        )
