"""Async HTTP client for the messaging API."""

import logging
from types import TracebackType
from typing import Any
from uuid import UUID

import httpx

from src.schemas.common import CountResponse
from src.schemas.conversation import (
    ConversationDetailResponse,
    ConversationSummary,
    MarkReadResponse,
)
from src.schemas.message import MessageResponse

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
DEFAULT_TIMEOUT_SECONDS = 10.0


class MessagingClientError(Exception):
    """Raised when the messaging API answers with a non-2xx status."""

    def __init__(self, status_code: int, message: str, error_type: str | None = None) -> None:
        """Initialize client error.

        Args:
            status_code: HTTP status returned by the API.
            message: Error message from the response envelope.
            error_type: Error category from the response envelope.
        """
        self.status_code = status_code
        self.message = message
        self.error_type = error_type
        super().__init__(f"{status_code}: {message}")


class MessagingClient:
    """Thin wrapper over httpx.AsyncClient for one authenticated user.

    Usage:
        async with MessagingClient("https://api.example.com", token) as client:
            conversations = await client.list_conversations()
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API origin, without the /api/v1 prefix.
            token: Supabase access token for the user.
            timeout: Per-request timeout in seconds.
            transport: Optional transport, used to stub the network in tests.
        """
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + API_PREFIX,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "MessagingClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._http.aclose()

    async def _request(self, method: str, path: str, json: Any = None) -> httpx.Response:
        response = await self._http.request(method, path, json=json)
        if response.is_success:
            return response

        error_type = None
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            message = str(body.get("message") or body.get("detail") or body)
            error_type = body.get("error")
        else:
            message = response.text or response.reason_phrase

        logger.debug("%s %s failed with %d: %s", method, path, response.status_code, message)
        raise MessagingClientError(response.status_code, message, error_type)

    async def list_conversations(self) -> list[ConversationSummary]:
        """List the user's conversations, most recently active first."""
        response = await self._request("GET", "/conversations")
        return [ConversationSummary.model_validate(item) for item in response.json()]

    async def resolve_conversation(self, user_id: UUID) -> tuple[ConversationDetailResponse, bool]:
        """Open the conversation with another user.

        Returns:
            tuple: (detail, created) where created is True when the server
            made a new conversation.
        """
        response = await self._request("POST", "/conversations", json={"user_id": str(user_id)})
        detail = ConversationDetailResponse.model_validate(response.json())
        return detail, response.status_code == httpx.codes.CREATED

    async def get_conversation(self, conversation_id: UUID) -> ConversationDetailResponse:
        """Fetch a conversation with its full history."""
        response = await self._request("GET", f"/conversations/{conversation_id}")
        return ConversationDetailResponse.model_validate(response.json())

    async def send_message(self, conversation_id: UUID, content: str) -> MessageResponse:
        """Send a message. Not idempotent; do not blindly retry."""
        response = await self._request(
            "POST", f"/conversations/{conversation_id}/messages", json={"content": content}
        )
        return MessageResponse.model_validate(response.json())

    async def mark_read(self, conversation_id: UUID) -> int:
        """Mark the conversation read and return how many messages changed."""
        response = await self._request("POST", f"/conversations/{conversation_id}/read")
        return MarkReadResponse.model_validate(response.json()).updated

    async def unread_count(self) -> int:
        """Total unread messages across all conversations."""
        response = await self._request("GET", "/conversations/unread-count")
        return CountResponse.model_validate(response.json()).count
