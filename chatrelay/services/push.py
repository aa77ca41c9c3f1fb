"""Service for handling Web Push notifications."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

import requests
from loguru import logger
from pywebpush import WebPushException, webpush
from sqlalchemy.orm import Session

from chatrelay.schemas.push import NotificationPayload
from chatrelay.services.subscriptions import SubscriptionService
from chatrelay.utils.exceptions import PushConfigurationError

BODY_PREVIEW_LENGTH = 100
ATTACHMENT_FALLBACK_BODY = "Sent an attachment"

GONE_STATUS_CODES = frozenset({404, 410})
TRANSIENT_STATUS_CODES = frozenset({408, 429})


class DeliveryStatus(str, Enum):
    """Closed classification of a single push attempt."""

    DELIVERED = "delivered"
    GONE = "gone"
    TRANSIENT = "transient"
    FAILED = "failed"


def classify_status_code(status_code: int | None) -> DeliveryStatus:
    """Map a push service HTTP status to a delivery classification."""

    if status_code is None:
        return DeliveryStatus.TRANSIENT
    if status_code in GONE_STATUS_CODES:
        return DeliveryStatus.GONE
    if status_code in TRANSIENT_STATUS_CODES or status_code >= 500:
        return DeliveryStatus.TRANSIENT
    if 200 <= status_code < 300:
        return DeliveryStatus.DELIVERED
    return DeliveryStatus.FAILED


@dataclass(frozen=True)
class DeliveryOutcome:
    status: DeliveryStatus
    status_code: int | None = None
    detail: str = ""


class PushTransport(Protocol):
    """Blocking transport delivering one encrypted payload to one endpoint."""

    def send(self, subscription_info: dict, payload: str) -> DeliveryOutcome:
        ...


class WebPushTransport:
    """Deliver notifications through the Web Push protocol with VAPID auth."""

    def __init__(
        self,
        vapid_private_key: str | None,
        vapid_subject: str,
        *,
        ttl: int = 0,
        timeout: float | None = None,
    ) -> None:
        if not vapid_private_key:
            raise PushConfigurationError("VAPID private key is not configured")
        self.vapid_private_key = vapid_private_key
        self.vapid_subject = vapid_subject
        self.ttl = ttl
        self.timeout = timeout

    def send(self, subscription_info: dict, payload: str) -> DeliveryOutcome:
        try:
            response = webpush(
                subscription_info=subscription_info,
                data=payload,
                vapid_private_key=self.vapid_private_key,
                # pywebpush adds aud/exp to the claims dict, so pass a fresh one.
                vapid_claims={"sub": self.vapid_subject},
                ttl=self.ttl,
                timeout=self.timeout,
            )
        except WebPushException as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            return DeliveryOutcome(classify_status_code(status_code), status_code, str(exc))
        except requests.RequestException as exc:
            return DeliveryOutcome(DeliveryStatus.TRANSIENT, None, str(exc))
        return DeliveryOutcome(DeliveryStatus.DELIVERED, getattr(response, "status_code", None))


def build_notification(
    *,
    session_id: str,
    sender: str,
    text: str,
    file_type: str,
    file_url: str,
    client_url: str,
) -> NotificationPayload:
    """Build the notification shown to every subscriber of a session."""

    body = text[:BODY_PREVIEW_LENGTH] if text else ATTACHMENT_FALLBACK_BODY
    icon = file_url if file_url and file_type.startswith("image/") else None
    return NotificationPayload(
        title=f"New message from {sender}",
        body=body,
        icon=icon,
        url=f"{client_url.rstrip('/')}/chat/{session_id}",
    )


@dataclass
class DispatchReport:
    """Summary of one push fan-out."""

    session_id: str
    attempted: int = 0
    delivered: int = 0
    pruned: int = 0
    failed: int = 0


class PushDeliveryService:
    """Fan a chat event out to the push subscriptions of its session.

    Each subscription gets exactly one attempt. Attempts run in worker
    threads, at most ``max_concurrency`` at a time and each bounded by
    ``timeout_seconds``. Subscriptions the push service reports as gone are
    deleted once every attempt has finished; any other failure is logged and
    the subscription is kept for the next event.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        transport: PushTransport | None,
        *,
        client_url: str,
        max_concurrency: int = 10,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.session_factory = session_factory
        self.transport = transport
        self.client_url = client_url
        self.max_concurrency = max_concurrency
        self.timeout_seconds = timeout_seconds

    @property
    def enabled(self) -> bool:
        return self.transport is not None

    async def dispatch(
        self,
        *,
        session_id: str,
        sender: str,
        text: str = "",
        file_type: str = "",
        file_url: str = "",
    ) -> DispatchReport:
        report = DispatchReport(session_id=session_id)
        if self.transport is None:
            logger.debug("Push transport not configured, skipping notification", session_id=session_id)
            return report

        with self.session_factory() as db:
            targets = [
                (subscription.endpoint, subscription.as_subscription_info())
                for subscription in SubscriptionService(db).list_for_session(session_id)
            ]
        if not targets:
            return report

        payload = build_notification(
            session_id=session_id,
            sender=sender,
            text=text,
            file_type=file_type,
            file_url=file_url,
            client_url=self.client_url,
        ).to_json()

        semaphore = asyncio.Semaphore(self.max_concurrency)
        outcomes = await asyncio.gather(
            *(self._attempt(semaphore, info, payload) for _, info in targets)
        )

        gone: list[str] = []
        for (endpoint, _), outcome in zip(targets, outcomes):
            report.attempted += 1
            if outcome.status is DeliveryStatus.DELIVERED:
                report.delivered += 1
            elif outcome.status is DeliveryStatus.GONE:
                gone.append(endpoint)
            else:
                report.failed += 1
                logger.warning(
                    "WebPush failed",
                    session_id=session_id,
                    endpoint=endpoint,
                    status=outcome.status.value,
                    status_code=outcome.status_code,
                    error=outcome.detail,
                )

        if gone:
            with self.session_factory() as db:
                report.pruned = SubscriptionService(db).delete_by_endpoints(gone)
            logger.info(
                "Pruned expired push subscriptions",
                session_id=session_id,
                endpoints=gone,
            )
        return report

    async def _attempt(
        self, semaphore: asyncio.Semaphore, subscription_info: dict, payload: str
    ) -> DeliveryOutcome:
        async with semaphore:
            try:
                return await asyncio.wait_for(
                    asyncio.to_thread(self.transport.send, subscription_info, payload),
                    timeout=self.timeout_seconds,
                )
            except asyncio.TimeoutError:
                return DeliveryOutcome(DeliveryStatus.TRANSIENT, detail="push attempt timed out")
            except Exception as exc:
                return DeliveryOutcome(DeliveryStatus.FAILED, detail=str(exc))


def build_push_transport(settings) -> WebPushTransport | None:
    """Return a Web Push transport, or ``None`` when VAPID keys are not set."""

    if not settings.VAPID_PRIVATE_KEY:
        logger.info("VAPID keys not configured, push notifications disabled")
        return None
    return WebPushTransport(
        settings.VAPID_PRIVATE_KEY,
        settings.VAPID_SUBJECT,
        ttl=settings.PUSH_TTL_SECONDS,
        timeout=settings.PUSH_TIMEOUT_SECONDS,
    )
