"""Schemas for Web Push subscriptions and notification payloads."""
from __future__ import annotations

import json
from typing import Optional

from pydantic import Field

from chatrelay.schemas.base import CamelModel


class SubscriptionKeys(CamelModel):
    """Key material a browser hands out for payload encryption."""

    p256dh: str = Field(min_length=1)
    auth: str = Field(min_length=1)


class PushSubscriptionCreate(CamelModel):
    """Inbound body of ``POST /notifications/subscribe``."""

    endpoint: str = Field(min_length=1)
    keys: SubscriptionKeys
    session_id: str = Field(min_length=1, max_length=64)


class VapidPublicKey(CamelModel):
    public_key: Optional[str] = None


class NotificationPayload(CamelModel):
    """Notification shown by the service worker of an offline client."""

    title: str
    body: str
    icon: Optional[str] = None
    url: str

    def to_json(self) -> str:
        """Serialise for the push transport, leaving out an absent icon."""

        return json.dumps(self.model_dump(by_alias=True, exclude_none=True))
