"""Database models package."""
from chatrelay.db.models.chat_session import ChatSession
from chatrelay.db.models.message import Message
from chatrelay.db.models.push_subscription import PushSubscription
from chatrelay.db.models.user import User

__all__ = [
    "ChatSession",
    "Message",
    "PushSubscription",
    "User",
]
