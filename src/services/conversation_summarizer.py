"""Per-user projections of conversations for list and detail views."""

import logging
from typing import Any
from uuid import UUID

from src.api.middleware.error_handler import InvalidStateError
from src.schemas.conversation import ConversationDetailResponse, ConversationSummary
from src.schemas.message import MessageResponse
from src.schemas.profile import ParticipantProfile
from src.services.conversation_service import ConversationService, participant_ids
from src.services.message_service import MessageService
from src.services.profile_service import ProfileService

logger = logging.getLogger(__name__)


class ConversationSummarizer:
    """Builds what one user sees of their conversations."""

    def __init__(self) -> None:
        """Initialize summarizer with the services it reads from."""
        self.conversation_service = ConversationService()
        self.message_service = MessageService()
        self.profile_service = ProfileService()

    async def list_summaries(self, profile_id: UUID) -> list[ConversationSummary]:
        """Summarize every conversation of a user, most recently active first.

        Args:
            profile_id: The requesting user's profile ID.

        Returns:
            list[ConversationSummary]: One summary per conversation.
        """
        conversations = await self.conversation_service.list_for_profile(profile_id)
        if not conversations:
            return []

        me = str(profile_id)
        other_ids: dict[str, str | None] = {}
        for conversation in conversations:
            others = [member for member in participant_ids(conversation) if member != me]
            if len(others) != 1:
                # Two-party invariant broken; show the row without a counterpart
                logger.error(
                    "Conversation %s has %d other participants, expected 1",
                    conversation["id"],
                    len(others),
                )
                other_ids[conversation["id"]] = None
            else:
                other_ids[conversation["id"]] = others[0]

        profiles = await self.profile_service.get_profiles_by_ids(
            [UUID(other) for other in other_ids.values() if other]
        )

        summaries = []
        for conversation in conversations:
            conversation_id = UUID(conversation["id"])
            other_id = other_ids[conversation["id"]]

            last_message = await self.message_service.get_last_message(conversation_id)
            unread_count = await self.message_service.count_unread(profile_id, conversation_id)

            summaries.append(
                ConversationSummary(
                    id=conversation_id,
                    last_message_at=conversation["last_message_at"],
                    other_participant=ParticipantProfile.from_row(profiles.get(other_id)) if other_id else None,
                    last_message=MessageResponse.from_row(last_message) if last_message else None,
                    unread_count=unread_count,
                    last_read_at=self._last_read_at(conversation, me),
                )
            )

        return summaries

    async def get_detail(
        self,
        conversation_id: UUID,
        profile_id: UUID,
    ) -> ConversationDetailResponse:
        """Build the detail view of one conversation for a participant.

        Does not change read state; marking read is a separate call.

        Args:
            conversation_id: The conversation's UUID.
            profile_id: The requesting user's profile ID.

        Returns:
            ConversationDetailResponse: Counterpart and full message history.

        Raises:
            NotFoundError: If the conversation does not exist.
            AuthorizationError: If the requester is not a participant.
            InvalidStateError: If the counterpart profile is missing.
        """
        conversation, other_id = await self.conversation_service.resolve_counterpart(
            conversation_id, profile_id
        )
        return await self.build_detail(conversation, profile_id, other_id)

    async def build_detail(
        self,
        conversation: dict[str, Any],
        profile_id: UUID,
        other_id: UUID,
    ) -> ConversationDetailResponse:
        """Assemble a detail view from an already authorized conversation row."""
        profiles = await self.profile_service.get_profiles_by_ids([profile_id, other_id])
        other = ParticipantProfile.from_row(profiles.get(str(other_id)))
        if other is None:
            raise InvalidStateError(
                f"Participant {other_id} of conversation {conversation['id']} has no profile"
            )
        me = ParticipantProfile.from_row(profiles.get(str(profile_id)))

        senders = {str(other_id): other}
        if me is not None:
            senders[str(profile_id)] = me

        rows = await self.message_service.list_messages(UUID(conversation["id"]))
        messages = [MessageResponse.from_row(row, sender=senders.get(row["sender_id"])) for row in rows]

        return ConversationDetailResponse(
            id=conversation["id"],
            created_at=conversation["created_at"],
            last_message_at=conversation["last_message_at"],
            other_participant=other,
            messages=messages,
        )

    @staticmethod
    def _last_read_at(conversation: dict[str, Any], me: str) -> Any:
        for participant in conversation.get("conversation_participants") or []:
            if participant["profile_id"] == me:
                return participant.get("last_read_at")
        return None
