"""Message store: ordered append, history and unread tracking."""

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from src.api.middleware.error_handler import InvalidRequestError, InvalidStateError
from src.core.config import get_settings
from src.core.supabase import first_row, get_supabase_client
from src.models.notification import NotificationType
from src.services.conversation_service import ConversationService
from src.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


def conversation_link(conversation_id: UUID | str) -> str:
    """Deep link that opens a conversation in the messaging page."""
    return f"/messaging?conversation={conversation_id}"


class MessageService:
    """Service for appending and reading direct messages."""

    def __init__(self) -> None:
        """Initialize message service with Supabase client."""
        self.client = get_supabase_client()
        self.conversation_service = ConversationService()
        self.notification_service = NotificationService()

    def validate_content(self, content: str | None) -> str:
        """Trim message content and enforce the length bounds.

        Args:
            content: Raw content from the request.

        Returns:
            str: The trimmed content.

        Raises:
            InvalidRequestError: If content is blank or too long.
        """
        text = (content or "").strip()
        if not text:
            raise InvalidRequestError("Message content is required")

        max_length = get_settings().message_max_length
        if len(text) > max_length:
            raise InvalidRequestError(
                f"Message content exceeds {max_length} characters",
                details=[{"loc": ["body", "content"], "msg": "too long", "type": "value_error"}],
            )
        return text

    async def send_message(
        self,
        conversation_id: UUID,
        sender_id: UUID,
        content: str,
        sender_name: str | None = None,
    ) -> dict[str, Any]:
        """Append a message to a conversation and notify the receiver.

        The insert and the conversation's last_message_at update run in
        one database function, which also keeps created_at non-decreasing
        within the conversation.

        Args:
            conversation_id: Target conversation.
            sender_id: Profile ID of the sender.
            content: Message text.
            sender_name: Display name used in the notification title.

        Returns:
            dict: The stored message row.

        Raises:
            InvalidRequestError: If content is blank or too long.
            NotFoundError: If the conversation does not exist.
            AuthorizationError: If the sender is not a participant.
            InvalidStateError: If the receiver cannot be resolved.
        """
        text = self.validate_content(content)

        _, receiver_id = await self.conversation_service.resolve_counterpart(
            conversation_id, sender_id
        )

        response = self.client.rpc(
            "append_direct_message",
            {
                "p_conversation_id": str(conversation_id),
                "p_sender_id": str(sender_id),
                "p_receiver_id": str(receiver_id),
                "p_content": text,
            },
        ).execute()

        message = first_row(response.data)
        if not message:
            raise InvalidStateError(f"append_direct_message returned no row for {conversation_id}")

        logger.info(
            "Message %s appended to conversation %s by %s",
            message["id"],
            conversation_id,
            sender_id,
        )

        await self._notify_receiver(conversation_id, receiver_id, text, sender_name)
        return message

    async def _notify_receiver(
        self,
        conversation_id: UUID,
        receiver_id: UUID,
        text: str,
        sender_name: str | None,
    ) -> None:
        """Emit the MESSAGE notification. The message is already stored."""
        preview_length = get_settings().notification_preview_length
        try:
            await self.notification_service.create_notification(
                profile_id=receiver_id,
                notification_type=NotificationType.MESSAGE,
                title=f"New message from {sender_name or 'Someone'}",
                body=text[:preview_length],
                link=conversation_link(conversation_id),
            )
        except Exception:
            logger.exception(
                "Failed to create message notification for %s in conversation %s",
                receiver_id,
                conversation_id,
            )

    async def list_messages(self, conversation_id: UUID) -> list[dict[str, Any]]:
        """Get the full history of a conversation, oldest first.

        Args:
            conversation_id: The conversation's UUID.

        Returns:
            list[dict]: Message rows ordered by created_at then id.
        """
        response = (
            self.client.table("messages")
            .select("*")
            .eq("conversation_id", str(conversation_id))
            .order("created_at", desc=False)
            .order("id", desc=False)
            .execute()
        )

        return response.data or []

    async def get_last_message(self, conversation_id: UUID) -> dict[str, Any] | None:
        """Get the most recent message of a conversation."""
        response = (
            self.client.table("messages")
            .select("*")
            .eq("conversation_id", str(conversation_id))
            .order("created_at", desc=True)
            .order("id", desc=True)
            .limit(1)
            .execute()
        )

        return response.data[0] if response.data else None

    async def count_unread(
        self,
        profile_id: UUID,
        conversation_id: UUID | None = None,
    ) -> int:
        """Count messages addressed to a profile that are still unread.

        The same predicate serves the per-conversation count and the
        global badge; conversation_id narrows the scope.

        Args:
            profile_id: The receiver's profile ID.
            conversation_id: Optional conversation to restrict to.

        Returns:
            int: Number of unread messages.
        """
        query = (
            self.client.table("messages")
            .select("id", count="exact")
            .eq("receiver_id", str(profile_id))
            .eq("read", False)
        )

        if conversation_id:
            query = query.eq("conversation_id", str(conversation_id))

        response = query.execute()
        return response.count or 0

    async def mark_read(self, conversation_id: UUID, profile_id: UUID) -> int:
        """Mark every message addressed to a participant in a conversation read.

        Args:
            conversation_id: The conversation's UUID.
            profile_id: The reading participant.

        Returns:
            int: Number of messages flipped to read.

        Raises:
            NotFoundError: If the conversation does not exist.
            AuthorizationError: If the profile is not a participant.
        """
        await self.conversation_service.resolve_counterpart(conversation_id, profile_id)

        response = (
            self.client.table("messages")
            .update({"read": True})
            .eq("conversation_id", str(conversation_id))
            .eq("receiver_id", str(profile_id))
            .eq("read", False)
            .execute()
        )
        updated = len(response.data or [])

        self.client.table("conversation_participants").update(
            {"last_read_at": datetime.now(timezone.utc).isoformat()}
        ).eq("conversation_id", str(conversation_id)).eq("profile_id", str(profile_id)).execute()

        logger.debug("Marked %d messages read in %s for %s", updated, conversation_id, profile_id)
        return updated
