"""Profile model type definitions for database operations."""

from datetime import datetime
from typing import TypedDict
from uuid import UUID


class Profile(TypedDict):
    """Profile table row representation.

    A profile is the user identity messaging works with. Profiles are
    owned by the profile pages; messaging only reads the display fields.
    """

    id: UUID
    user_id: UUID
    display_name: str | None
    email: str | None
    avatar_url: str | None
    headline: str | None
    created_at: datetime
    updated_at: datetime
