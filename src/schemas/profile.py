"""Profile Pydantic schemas for API request/response models."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ProfileBase(BaseModel):
    """Base profile fields shared across schemas."""

    display_name: str | None = Field(default=None, max_length=255, description="User display name")
    email: str | None = Field(default=None, max_length=255, description="User email address")
    avatar_url: str | None = Field(default=None, description="URL to user's avatar image")
    headline: str | None = Field(default=None, max_length=255, description="Professional headline")


class ProfileResponse(ProfileBase):
    """Schema for profile API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Profile unique identifier")
    user_id: UUID = Field(description="Associated auth user ID")
    created_at: datetime = Field(description="Profile creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")


class ParticipantProfile(BaseModel):
    """Display fields of a conversation participant.

    Email is deliberately absent; the other side of a conversation only
    sees what the public profile shows.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Profile unique identifier")
    display_name: str | None = Field(default=None, description="Display name")
    avatar_url: str | None = Field(default=None, description="Avatar image URL")
    headline: str | None = Field(default=None, description="Professional headline")

    @classmethod
    def from_row(cls, row: dict[str, Any] | None) -> "ParticipantProfile | None":
        """Build from a profiles row, ignoring columns that are not shown."""
        if not row:
            return None
        return cls(
            id=row["id"],
            display_name=row.get("display_name"),
            avatar_url=row.get("avatar_url"),
            headline=row.get("headline"),
        )
