"""Chat session and message history endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chatrelay.api import deps
from chatrelay.db.models.chat_session import ChatSession
from chatrelay.db.models.message import Message
from chatrelay.schemas import ChatSessionCreated, ChatSessionRead, MessageRead
from chatrelay.services.chat_sessions import ChatSessionService
from chatrelay.utils.exceptions import handle_database_error

router = APIRouter(tags=["chats"])


@router.post("/create-chat", response_model=ChatSessionCreated)
def create_chat(db: Session = Depends(deps.get_db)) -> ChatSessionCreated:
    """Open a new chat session and return its identifier."""

    try:
        session = ChatSessionService(db).create_session()
    except SQLAlchemyError as exc:
        raise handle_database_error(exc, "Could not create chat session") from exc
    return ChatSessionCreated(session_id=session.session_id)


@router.get("/chat-sessions", response_model=list[ChatSessionRead])
def list_chat_sessions(db: Session = Depends(deps.get_db)) -> list[ChatSession]:
    """Return every chat session, newest first."""

    try:
        return ChatSessionService(db).list_sessions()
    except SQLAlchemyError as exc:
        raise handle_database_error(exc, "Could not fetch chat sessions") from exc


@router.get("/messages/{session_id}", response_model=list[MessageRead])
def list_messages(session_id: str, db: Session = Depends(deps.get_db)) -> list[Message]:
    """Return the messages of a session in the order they were received."""

    try:
        return ChatSessionService(db).list_messages(session_id)
    except SQLAlchemyError as exc:
        raise handle_database_error(exc, "Failed to fetch messages") from exc
