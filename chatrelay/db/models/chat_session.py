"""Chat session database model."""
import uuid

from sqlalchemy import Column, DateTime, String, Uuid

from chatrelay.db.base import Base, utcnow

class ChatSession(Base):
    """A chat room addressed everywhere by its public ``session_id``."""

    __tablename__ = "chat_sessions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    session_id = Column(String(64), unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
