"""User database model."""
import uuid

from sqlalchemy import Column, DateTime, String, Text, Uuid

from chatrelay.db.base import Base, utcnow

class User(Base):
    """A contact invited to chat through a generated session link."""

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    company_name = Column(String(255), nullable=False)
    link = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
