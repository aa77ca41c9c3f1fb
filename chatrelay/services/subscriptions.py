"""Persistence of Web Push subscriptions."""
from __future__ import annotations

from typing import Iterable

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from chatrelay.db.models.push_subscription import PushSubscription
from chatrelay.schemas.push import PushSubscriptionCreate


class SubscriptionService:
    """Register, look up and prune push subscriptions."""

    def __init__(self, db: Session):
        self.db = db

    def subscribe(self, payload: PushSubscriptionCreate, user_agent: str | None = None) -> PushSubscription:
        """Register a subscription, replacing keys and session of a known endpoint."""

        stmt = select(PushSubscription).where(PushSubscription.endpoint == payload.endpoint)
        subscription = self.db.scalars(stmt).first()
        keys = payload.keys.model_dump()
        if subscription:
            subscription.keys = keys
            subscription.session_id = payload.session_id
            subscription.user_agent = user_agent
        else:
            subscription = PushSubscription(
                endpoint=payload.endpoint,
                keys=keys,
                session_id=payload.session_id,
                user_agent=user_agent,
            )
            self.db.add(subscription)

        self.db.commit()
        self.db.refresh(subscription)
        logger.info(
            "Push subscription registered",
            session_id=payload.session_id,
            endpoint=payload.endpoint,
        )
        return subscription

    def list_for_session(self, session_id: str) -> list[PushSubscription]:
        stmt = select(PushSubscription).where(PushSubscription.session_id == session_id)
        return list(self.db.scalars(stmt))

    def delete_by_endpoints(self, endpoints: Iterable[str]) -> int:
        """Delete subscriptions by endpoint and return how many rows went away."""

        endpoints = list(endpoints)
        if not endpoints:
            return 0
        result = self.db.execute(
            delete(PushSubscription).where(PushSubscription.endpoint.in_(endpoints))
        )
        self.db.commit()
        return result.rowcount or 0
