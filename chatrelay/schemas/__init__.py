"""Pydantic schemas package."""

from chatrelay.schemas.chat import ChatSessionCreated, ChatSessionRead, MessageRead
from chatrelay.schemas.push import (
    NotificationPayload,
    PushSubscriptionCreate,
    SubscriptionKeys,
    VapidPublicKey,
)
from chatrelay.schemas.realtime import (
    ChatMessageEvent,
    ChatMessagePayload,
    JoinSessionEvent,
    RelayClientEvent,
)
from chatrelay.schemas.user import UserCreate, UserRead

__all__ = [
    "ChatSessionCreated",
    "ChatSessionRead",
    "MessageRead",
    "NotificationPayload",
    "PushSubscriptionCreate",
    "SubscriptionKeys",
    "VapidPublicKey",
    "ChatMessageEvent",
    "ChatMessagePayload",
    "JoinSessionEvent",
    "RelayClientEvent",
    "UserCreate",
    "UserRead",
]
