"""Direct messaging API routes."""

from uuid import UUID

from fastapi import APIRouter, Response, status

from src.api.deps import CurrentProfile
from src.schemas.common import CountResponse
from src.schemas.conversation import (
    ConversationCreate,
    ConversationDetailResponse,
    ConversationSummary,
    MarkReadResponse,
)
from src.schemas.message import MessageCreate, MessageResponse
from src.schemas.profile import ParticipantProfile
from src.services.conversation_service import ConversationService
from src.services.conversation_summarizer import ConversationSummarizer
from src.services.message_service import MessageService

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.get(
    "",
    response_model=list[ConversationSummary],
    summary="List conversations",
    description="Returns the user's conversations, most recently active first.",
)
async def list_conversations(profile: CurrentProfile) -> list[ConversationSummary]:
    """List the requester's conversations with last message and unread count."""
    summarizer = ConversationSummarizer()
    return await summarizer.list_summaries(UUID(profile["id"]))


@router.post(
    "",
    response_model=ConversationDetailResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        200: {"description": "Existing conversation returned"},
        201: {"description": "Conversation created"},
        400: {"description": "Conversation with yourself"},
        404: {"description": "Target user not found"},
    },
    summary="Open a conversation with a user",
    description="Returns the conversation between the requester and the target user, creating it if needed.",
)
async def resolve_conversation(
    data: ConversationCreate,
    profile: CurrentProfile,
    response: Response,
) -> ConversationDetailResponse:
    """Find or create the one conversation between two users.

    Args:
        data: Target user.
        profile: The requester's profile.
        response: Used to report 200 when the conversation already existed.

    Returns:
        ConversationDetailResponse: The conversation with its messages.
    """
    profile_id = UUID(profile["id"])
    service = ConversationService()
    conversation, created = await service.resolve_or_create(profile_id, data.user_id)

    if not created:
        response.status_code = status.HTTP_200_OK

    summarizer = ConversationSummarizer()
    return await summarizer.build_detail(conversation, profile_id, data.user_id)


@router.get(
    "/unread-count",
    response_model=CountResponse,
    summary="Unread message count",
    description="Total number of unread messages addressed to the user across all conversations.",
)
async def get_unread_count(profile: CurrentProfile) -> CountResponse:
    """Count unread messages for the badge."""
    service = MessageService()
    return CountResponse(count=await service.count_unread(UUID(profile["id"])))


@router.get(
    "/{conversation_id}",
    response_model=ConversationDetailResponse,
    responses={
        403: {"description": "Not a participant"},
        404: {"description": "Conversation not found"},
    },
    summary="Get conversation",
    description="Returns the other participant and the full message history, oldest first.",
)
async def get_conversation(
    conversation_id: UUID,
    profile: CurrentProfile,
) -> ConversationDetailResponse:
    """Fetch one conversation. Clients poll this while a chat is open."""
    summarizer = ConversationSummarizer()
    return await summarizer.get_detail(conversation_id, UUID(profile["id"]))


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Blank or oversized content"},
        403: {"description": "Not a participant"},
        404: {"description": "Conversation not found"},
    },
    summary="Send a message",
    description="Appends a message to the conversation and notifies the other participant.",
)
async def send_message(
    conversation_id: UUID,
    data: MessageCreate,
    profile: CurrentProfile,
) -> MessageResponse:
    """Send a message as the requester.

    Sends are not idempotent; a retried request stores a second message.

    Args:
        conversation_id: Target conversation.
        data: Message content.
        profile: The sender's profile.

    Returns:
        MessageResponse: The stored message with sender display fields.
    """
    service = MessageService()
    message = await service.send_message(
        conversation_id=conversation_id,
        sender_id=UUID(profile["id"]),
        content=data.content,
        sender_name=profile.get("display_name"),
    )

    return MessageResponse.from_row(message, sender=ParticipantProfile.from_row(profile))


@router.post(
    "/{conversation_id}/read",
    response_model=MarkReadResponse,
    responses={
        403: {"description": "Not a participant"},
        404: {"description": "Conversation not found"},
    },
    summary="Mark conversation read",
    description="Marks every message addressed to the requester in this conversation as read.",
)
async def mark_conversation_read(
    conversation_id: UUID,
    profile: CurrentProfile,
) -> MarkReadResponse:
    """Mark the requester's incoming messages in a conversation read."""
    service = MessageService()
    updated = await service.mark_read(conversation_id, UUID(profile["id"]))
    return MarkReadResponse(updated=updated)
