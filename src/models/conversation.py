"""Conversation model type definitions for database operations."""

from datetime import datetime
from typing import TypedDict
from uuid import UUID


class Conversation(TypedDict):
    """Conversations table row representation.

    A conversation always has exactly two participants. pair_key is the
    two profile ids in sorted order joined by a colon and is unique, so a
    pair of users can never own two conversations.
    """

    id: UUID
    pair_key: str
    created_at: datetime
    last_message_at: datetime


class ConversationParticipant(TypedDict):
    """conversation_participants table row representation."""

    conversation_id: UUID
    profile_id: UUID
    last_read_at: datetime | None
    joined_at: datetime
