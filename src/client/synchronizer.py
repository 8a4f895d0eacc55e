"""Polling synchronizer that keeps one open conversation up to date."""

import asyncio
import logging
from typing import Callable
from uuid import UUID

import httpx

from src.client.messaging_client import MessagingClient, MessagingClientError
from src.schemas.conversation import ConversationDetailResponse
from src.schemas.message import MessageResponse

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 5.0

UpdateCallback = Callable[[ConversationDetailResponse], None]


class ConversationSynchronizer:
    """Re-fetches the open conversation on a timer in place of push delivery.

    Each selection is tagged with a generation number. A fetch that
    completes after the selection changed carries an old tag and is
    dropped instead of being merged into the view.

    The view is replaced only when the server's message count differs
    from the local one, so edits to read flags alone do not trigger
    on_update. A local send bumps the view revision; a poll issued
    before that carries an older snapshot and is dropped as well.
    """

    def __init__(
        self,
        client: MessagingClient,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        on_update: UpdateCallback | None = None,
    ) -> None:
        """Initialize synchronizer.

        Args:
            client: API client for the signed-in user.
            interval_seconds: Delay between polls.
            on_update: Called with the new view whenever it is replaced.
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.client = client
        self.interval_seconds = interval_seconds
        self.on_update = on_update
        self.conversation_id: UUID | None = None
        self.view: ConversationDetailResponse | None = None
        self._generation = 0
        self._revision = 0
        self._task: asyncio.Task | None = None

    @property
    def is_polling(self) -> bool:
        """Whether a poll timer is running."""
        return self._task is not None and not self._task.done()

    def _is_current(self, conversation_id: UUID, generation: int) -> bool:
        return self.conversation_id == conversation_id and self._generation == generation

    def _stop_timer(self) -> asyncio.Task | None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        return task

    def _apply(self, detail: ConversationDetailResponse) -> None:
        self.view = detail
        if self.on_update is not None:
            self.on_update(detail)

    async def open(self, conversation_id: UUID) -> ConversationDetailResponse | None:
        """Select a conversation, load it and start polling.

        Args:
            conversation_id: Conversation to keep in sync.

        Returns:
            ConversationDetailResponse | None: The loaded view, or None if
            another conversation was selected while this one was loading.
        """
        self._stop_timer()
        self._generation += 1
        generation = self._generation
        self.conversation_id = conversation_id
        self.view = None

        detail = await self.client.get_conversation(conversation_id)
        if not self._is_current(conversation_id, generation):
            logger.debug("Dropping initial load of %s, selection changed", conversation_id)
            return None

        self._apply(detail)
        self._task = asyncio.create_task(self._poll_loop(conversation_id, generation))
        logger.debug("Polling %s every %.1fs", conversation_id, self.interval_seconds)
        return detail

    async def poll_once(self) -> bool:
        """Fetch the open conversation once.

        Returns:
            bool: True if the view was replaced.
        """
        if self.conversation_id is None:
            return False
        return await self._poll(self.conversation_id, self._generation)

    async def _poll(self, conversation_id: UUID, generation: int) -> bool:
        revision = self._revision
        detail = await self.client.get_conversation(conversation_id)

        if not self._is_current(conversation_id, generation):
            logger.debug("Discarding stale poll of %s (generation %d)", conversation_id, generation)
            return False

        if revision != self._revision:
            logger.debug("Discarding poll of %s issued before a local send", conversation_id)
            return False

        if self.view is not None and len(detail.messages) == len(self.view.messages):
            return False

        self._apply(detail)
        return True

    async def _poll_loop(self, conversation_id: UUID, generation: int) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            if not self._is_current(conversation_id, generation):
                return
            try:
                await self._poll(conversation_id, generation)
            except (MessagingClientError, httpx.HTTPError) as e:
                logger.warning("Poll of conversation %s failed: %s", conversation_id, e)

    async def send(self, content: str) -> MessageResponse:
        """Send a message in the open conversation and add it to the view.

        Raises:
            RuntimeError: If no conversation is open.
            MessagingClientError: If the API rejects the message.
        """
        if self.conversation_id is None:
            raise RuntimeError("No conversation is open")

        conversation_id, generation = self.conversation_id, self._generation
        message = await self.client.send_message(conversation_id, content)

        if self._is_current(conversation_id, generation) and self.view is not None:
            if all(existing.id != message.id for existing in self.view.messages):
                self._revision += 1
                messages = [*self.view.messages, message]
                self._apply(
                    self.view.model_copy(
                        update={"messages": messages, "last_message_at": message.created_at}
                    )
                )
        return message

    async def close(self) -> None:
        """Stop polling and clear the view."""
        self._generation += 1
        self.conversation_id = None
        self.view = None

        task = self._stop_timer()
        if task is not None and task is not asyncio.current_task():
            try:
                await task
            except asyncio.CancelledError:
                pass
