"""Conversation directory: one conversation per pair of users."""

import logging
from typing import Any
from uuid import UUID

from postgrest.exceptions import APIError

from src.api.middleware.error_handler import (
    AuthorizationError,
    InvalidRequestError,
    InvalidStateError,
    NotFoundError,
)
from src.core.supabase import first_row, get_supabase_client, is_unique_violation
from src.services.profile_service import ProfileService

logger = logging.getLogger(__name__)

PARTICIPANTS_SELECT = "*, conversation_participants(profile_id, last_read_at)"


def make_pair_key(profile_a: UUID, profile_b: UUID) -> str:
    """Build the order-independent key for a pair of profiles.

    Args:
        profile_a: One participant.
        profile_b: The other participant.

    Returns:
        str: Both IDs in sorted order joined by a colon.
    """
    low, high = sorted((str(profile_a), str(profile_b)))
    return f"{low}:{high}"


def participant_ids(conversation: dict[str, Any]) -> list[str]:
    """Extract participant profile IDs from a conversation row with embeds."""
    return [p["profile_id"] for p in conversation.get("conversation_participants") or []]


class ConversationService:
    """Service that owns conversation creation and participant checks."""

    def __init__(self) -> None:
        """Initialize conversation service with Supabase client."""
        self.client = get_supabase_client()
        self.profile_service = ProfileService()

    async def get_conversation(self, conversation_id: UUID) -> dict[str, Any] | None:
        """Get a conversation with its participant rows.

        Args:
            conversation_id: The conversation's UUID.

        Returns:
            dict | None: The conversation data or None if not found.
        """
        response = (
            self.client.table("conversations")
            .select(PARTICIPANTS_SELECT)
            .eq("id", str(conversation_id))
            .maybe_single()
            .execute()
        )

        return response.data if response and response.data else None

    async def get_by_pair_key(self, pair_key: str) -> dict[str, Any] | None:
        """Get the conversation for a normalized pair key."""
        response = (
            self.client.table("conversations")
            .select(PARTICIPANTS_SELECT)
            .eq("pair_key", pair_key)
            .maybe_single()
            .execute()
        )

        return response.data if response and response.data else None

    async def resolve_or_create(
        self,
        requester_id: UUID,
        other_id: UUID,
    ) -> tuple[dict[str, Any], bool]:
        """Return the conversation between two users, creating it if needed.

        The conversation row and both participant rows are inserted by one
        database function, so they appear together or not at all. When two
        requests race for the same pair the loser hits the unique pair_key
        constraint and returns the winner's conversation.

        Args:
            requester_id: Profile ID of the user making the request.
            other_id: Profile ID of the other user.

        Returns:
            tuple: (conversation_data, created) where created is True only if
            this call inserted the conversation.

        Raises:
            InvalidRequestError: If both IDs are the same user.
            NotFoundError: If other_id does not name a profile.
        """
        if requester_id == other_id:
            raise InvalidRequestError("Cannot create conversation with yourself")

        other = await self.profile_service.get_profile_by_id(other_id)
        if not other:
            raise NotFoundError("User not found")

        pair_key = make_pair_key(requester_id, other_id)

        existing = await self.get_by_pair_key(pair_key)
        if existing:
            return existing, False

        try:
            response = self.client.rpc(
                "create_direct_conversation",
                {
                    "p_pair_key": pair_key,
                    "p_profile_a": str(requester_id),
                    "p_profile_b": str(other_id),
                },
            ).execute()
        except APIError as e:
            if not is_unique_violation(e):
                raise
            logger.info("Conversation for pair %s created concurrently, reusing it", pair_key)
            existing = await self.get_by_pair_key(pair_key)
            if not existing:
                raise InvalidStateError(
                    f"Pair {pair_key} reported as duplicate but no conversation found"
                ) from e
            return existing, False

        created = first_row(response.data)
        if not created:
            raise InvalidStateError(f"create_direct_conversation returned no row for {pair_key}")

        logger.info("Created conversation %s for pair %s", created["id"], pair_key)

        # Re-read so the response carries the participant rows
        conversation = await self.get_conversation(UUID(created["id"]))
        return conversation or created, True

    async def resolve_counterpart(
        self,
        conversation_id: UUID,
        profile_id: UUID,
    ) -> tuple[dict[str, Any], UUID]:
        """Authorize a participant and find the other one.

        Args:
            conversation_id: The conversation's UUID.
            profile_id: Profile ID of the requester.

        Returns:
            tuple: (conversation_data, other_profile_id)

        Raises:
            NotFoundError: If the conversation does not exist.
            AuthorizationError: If the requester is not a participant.
            InvalidStateError: If the conversation does not have exactly
                one other participant.
        """
        conversation = await self.get_conversation(conversation_id)
        if not conversation:
            raise NotFoundError("Conversation not found")

        members = participant_ids(conversation)
        if str(profile_id) not in members:
            raise AuthorizationError("Not a participant of this conversation")

        others = [member for member in members if member != str(profile_id)]
        if len(others) != 1:
            raise InvalidStateError(
                f"Conversation {conversation_id} has {len(members)} participants, expected 2"
            )

        return conversation, UUID(others[0])

    async def list_for_profile(self, profile_id: UUID) -> list[dict[str, Any]]:
        """List conversations a profile participates in, most recent first.

        Args:
            profile_id: The participant's profile ID.

        Returns:
            list[dict]: Conversation rows with participant embeds.
        """
        memberships = (
            self.client.table("conversation_participants")
            .select("conversation_id")
            .eq("profile_id", str(profile_id))
            .execute()
        )
        conversation_ids = [row["conversation_id"] for row in memberships.data or []]
        if not conversation_ids:
            return []

        response = (
            self.client.table("conversations")
            .select(PARTICIPANTS_SELECT)
            .in_("id", conversation_ids)
            .order("last_message_at", desc=True)
            .execute()
        )

        return response.data or []
