"""Test doubles for sockets and the push transport."""
from __future__ import annotations

import asyncio
import threading
import time

from chatrelay.services.push import DeliveryOutcome, DeliveryStatus


class FakeWebSocket:
    """Minimal stand-in for ``fastapi.WebSocket`` recording sent frames."""

    def __init__(self, fail: bool = False) -> None:
        self.accepted = False
        self.fail = fail
        self.sent: list[dict] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, message: dict) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        await asyncio.sleep(0)
        self.sent.append(message)


class RecordingTransport:
    """Push transport returning canned outcomes per endpoint."""

    def __init__(
        self,
        outcomes: dict[str, DeliveryStatus] | None = None,
        *,
        delay: float = 0.0,
        barrier: threading.Barrier | None = None,
        release: threading.Event | None = None,
    ) -> None:
        self.outcomes = outcomes or {}
        self.delay = delay
        self.barrier = barrier
        self.release = release
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def send(self, subscription_info: dict, payload: str) -> DeliveryOutcome:
        endpoint = subscription_info["endpoint"]
        with self._lock:
            self.calls.append((endpoint, payload))
        if self.barrier is not None:
            self.barrier.wait(timeout=5)
        if self.release is not None:
            self.release.wait(timeout=5)
        if self.delay:
            time.sleep(self.delay)
        status = self.outcomes.get(endpoint, DeliveryStatus.DELIVERED)
        if isinstance(status, Exception):
            raise status
        return DeliveryOutcome(status, {DeliveryStatus.GONE: 410}.get(status, 201))

    @property
    def endpoints(self) -> list[str]:
        with self._lock:
            return [endpoint for endpoint, _ in self.calls]
