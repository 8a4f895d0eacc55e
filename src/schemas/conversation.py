"""Conversation Pydantic schemas for API request/response models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.message import MessageResponse
from src.schemas.profile import ParticipantProfile


class ConversationCreate(BaseModel):
    """Schema for resolving or creating a conversation with another user."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID = Field(..., description="Profile ID of the other participant")


class ConversationSummary(BaseModel):
    """One row of the conversation list, as seen by the requesting user."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Conversation unique identifier")
    last_message_at: datetime = Field(description="Time of the latest activity")
    other_participant: ParticipantProfile | None = Field(
        default=None, description="The participant who is not the requester"
    )
    last_message: MessageResponse | None = Field(default=None, description="Most recent message")
    unread_count: int = Field(default=0, ge=0, description="Messages addressed to the requester not yet read")
    last_read_at: datetime | None = Field(default=None, description="When the requester last marked it read")


class ConversationDetailResponse(BaseModel):
    """Conversation with its participants and full message history."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Conversation unique identifier")
    created_at: datetime = Field(description="Creation timestamp")
    last_message_at: datetime = Field(description="Time of the latest activity")
    other_participant: ParticipantProfile = Field(description="The participant who is not the requester")
    messages: list[MessageResponse] = Field(
        default_factory=list, description="Messages ordered oldest to newest"
    )


class MarkReadResponse(BaseModel):
    """Result of marking a conversation read."""

    updated: int = Field(ge=0, description="Number of messages flipped to read")
