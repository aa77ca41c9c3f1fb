"""Service layer for chat sessions and their message history."""
from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from chatrelay.db.models.chat_session import ChatSession
from chatrelay.db.models.message import Message


class ChatSessionService:
    """Data access for sessions and the append-only message log."""

    def __init__(self, db: Session):
        self.db = db

    def create_session(self, session_id: str | None = None) -> ChatSession:
        """Create a chat session, generating an identifier when none is given."""

        session = ChatSession(session_id=session_id or str(uuid.uuid4()))
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)
        return session

    def list_sessions(self) -> list[ChatSession]:
        """Return all sessions, newest first."""

        stmt = select(ChatSession).order_by(ChatSession.created_at.desc())
        return list(self.db.scalars(stmt))

    def record_message(self, message: Message) -> Message:
        """Append a message to the log."""

        self.db.add(message)
        self.db.commit()
        return message

    def list_messages(self, session_id: str) -> list[Message]:
        """Return the messages of a session in chronological order."""

        stmt = (
            select(Message)
            .where(Message.session_id == session_id)
            .order_by(Message.created_at.asc())
        )
        return list(self.db.scalars(stmt))
