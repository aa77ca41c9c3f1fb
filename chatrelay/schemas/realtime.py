"""Schemas for real-time session messaging."""
from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import Field, field_validator

from chatrelay.schemas.base import CamelModel


class JoinSessionEvent(CamelModel):
    """Inbound request to receive broadcasts for a session."""

    type: Literal["joinSession"]
    session_id: str = Field(min_length=1)


class ChatMessageEvent(CamelModel):
    """Inbound chat message sent by a participant."""

    type: Literal["chatMessage"]
    session_id: str = Field(min_length=1)
    sender: str = ""
    text: str = ""
    file_url: str = ""
    file_type: str = ""

    @field_validator("sender", "text", "file_url", "file_type", mode="before")
    @classmethod
    def blank_when_missing(cls, value: Any) -> Any:
        return "" if value is None else value


class ChatMessagePayload(CamelModel):
    """Outbound broadcast body. ``createdAt`` is deliberately not included."""

    session_id: str
    sender: str
    text: str = ""
    file_url: str = ""
    file_type: str = ""


RelayClientEvent = Annotated[
    JoinSessionEvent | ChatMessageEvent,
    Field(discriminator="type"),
]
