"""Chat message database model."""
import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, String, Text, Uuid

from chatrelay.db.base import Base, utcnow


class Message(Base):
    """A single chat event. Rows are only ever appended."""

    __tablename__ = "messages"
    __table_args__ = (CheckConstraint("sender <> ''", name="ck_messages_sender_not_empty"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Not a foreign key: messages for unknown sessions are still stored.
    session_id = Column(String(64), nullable=False, index=True)
    sender = Column(String(255), nullable=False)
    text = Column(Text, nullable=False, default="")
    file_url = Column(Text, nullable=False, default="")
    file_type = Column(String(255), nullable=False, default="")

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
