"""Push Notification Subscription model."""
import uuid

from sqlalchemy import Column, DateTime, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from chatrelay.db.base import Base


class PushSubscription(Base):
    """Stores Web Push API subscription details for a chat session."""

    __tablename__ = "push_subscriptions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    endpoint = Column(Text, nullable=False, unique=True)
    keys = Column(JSONB().with_variant(JSON(), "sqlite"), nullable=False)  # { p256dh: "...", auth: "..." }
    session_id = Column(String(64), nullable=False, index=True)

    user_agent = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def as_subscription_info(self) -> dict:
        """Return the ``subscription_info`` mapping expected by pywebpush."""

        return {"endpoint": self.endpoint, "keys": dict(self.keys or {})}
