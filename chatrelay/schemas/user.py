"""Pydantic models for user API interactions."""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from chatrelay.schemas.base import CamelModel


class UserCreate(CamelModel):
    """Schema for the create-user request."""

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    company_name: str = Field(min_length=1, max_length=255)


class UserRead(CamelModel):
    """Schema returned after user creation or retrieval."""

    id: uuid.UUID
    name: str
    email: str
    company_name: str
    link: str
    created_at: Optional[datetime] = None
