"""Service layer for user operations."""
from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from chatrelay.db.models.chat_session import ChatSession
from chatrelay.db.models.user import User
from chatrelay.schemas.user import UserCreate
from chatrelay.utils.exceptions import NotFoundError


class UserNotFoundError(NotFoundError):
    """Raised when a user lookup fails."""


class UserService:
    """Encapsulates reusable user-related data access operations."""

    def __init__(self, db: Session, client_url: str):
        self.db = db
        self.client_url = client_url.rstrip("/")

    def create(self, payload: UserCreate) -> User:
        """Create a user together with the chat session their link points to."""

        session_id = str(uuid.uuid4())
        user = User(
            name=payload.name,
            email=payload.email,
            company_name=payload.company_name,
            link=f"{self.client_url}/chat/{session_id}",
        )
        self.db.add(ChatSession(session_id=session_id))
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def list_users(self) -> list[User]:
        """Return users sorted by creation date, newest first."""

        stmt = select(User).order_by(User.created_at.desc())
        return list(self.db.scalars(stmt))

    def delete(self, user_id: uuid.UUID) -> None:
        """Delete a user or raise ``UserNotFoundError``."""

        user = self.db.get(User, user_id)
        if not user:
            raise UserNotFoundError("User not found")
        self.db.delete(user)
        self.db.commit()
