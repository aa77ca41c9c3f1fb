"""Pydantic models for chat sessions and stored messages."""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from chatrelay.schemas.base import CamelModel


class ChatSessionCreated(CamelModel):
    """Response returned after creating a chat session."""

    session_id: str


class ChatSessionRead(CamelModel):
    """Chat session listing entry."""

    session_id: str
    created_at: Optional[datetime] = None


class MessageRead(CamelModel):
    """A persisted chat message as returned by the history endpoint."""

    id: uuid.UUID
    session_id: str
    sender: str
    text: str = ""
    file_url: str = ""
    file_type: str = ""
    created_at: datetime
