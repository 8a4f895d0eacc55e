"""Database model type definitions."""

from src.models.conversation import Conversation, ConversationParticipant
from src.models.message import Message
from src.models.notification import Notification, NotificationType
from src.models.profile import Profile

__all__ = [
    "Profile",
    "Conversation",
    "ConversationParticipant",
    "Message",
    "Notification",
    "NotificationType",
]
