"""Client-side access to the messaging API."""

from src.client.messaging_client import MessagingClient, MessagingClientError
from src.client.synchronizer import ConversationSynchronizer

__all__ = [
    "ConversationSynchronizer",
    "MessagingClient",
    "MessagingClientError",
]
