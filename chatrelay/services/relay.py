"""Ingest of chat events and their fan-out to sockets and push subscribers."""
from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass
from typing import Callable

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chatrelay.db.base import utcnow
from chatrelay.db.models.message import Message
from chatrelay.schemas.realtime import ChatMessagePayload
from chatrelay.services.chat_sessions import ChatSessionService
from chatrelay.services.push import DispatchReport, PushDeliveryService
from chatrelay.services.realtime import SessionConnectionRegistry

CHAT_MESSAGE_EVENT = "chatMessage"


@dataclass
class RelayStats:
    """Process-local counters exposed on the health endpoint."""

    messages_received: int = 0
    messages_persisted: int = 0
    persistence_failures: int = 0
    push_dispatches: int = 0
    push_delivered: int = 0
    push_pruned: int = 0
    push_failed: int = 0
    push_dispatch_errors: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class ChatRelayEngine:
    """Persist, broadcast and push every inbound chat message.

    The three stages are independent: a failed database write is logged and
    the message is still broadcast, and push delivery runs as a detached task
    whose outcome is only logged. Nothing is retried.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        registry: SessionConnectionRegistry,
        push_service: PushDeliveryService,
    ) -> None:
        self.session_factory = session_factory
        self.registry = registry
        self.push_service = push_service
        self.stats = RelayStats()
        self._pending: set[asyncio.Task] = set()

    async def handle_chat_event(
        self,
        *,
        session_id: str,
        sender: str,
        text: str = "",
        file_url: str = "",
        file_type: str = "",
    ) -> ChatMessagePayload:
        """Run one chat event through persistence, broadcast and push."""

        self.stats.messages_received += 1
        message = Message(
            session_id=session_id,
            sender=sender,
            text=text,
            file_url=file_url,
            file_type=file_type,
            created_at=utcnow(),
        )
        self._persist(message)

        payload = ChatMessagePayload(
            session_id=session_id,
            sender=sender,
            text=text,
            file_url=file_url,
            file_type=file_type,
        )
        await self.registry.broadcast(
            session_id,
            {"type": CHAT_MESSAGE_EVENT, "data": payload.model_dump(by_alias=True)},
        )

        if self.push_service.enabled:
            self._spawn_push(payload)
        return payload

    def _persist(self, message: Message) -> None:
        """Store the message. A failed write is logged and counted, never retried."""

        try:
            with self.session_factory() as db:
                ChatSessionService(db).record_message(message)
        except SQLAlchemyError as exc:
            self.stats.persistence_failures += 1
            logger.error(
                "Error saving message",
                session_id=message.session_id,
                sender=message.sender,
                error=str(exc),
            )
            return
        self.stats.messages_persisted += 1

    def _spawn_push(self, payload: ChatMessagePayload) -> None:
        task = asyncio.create_task(
            self.push_service.dispatch(
                session_id=payload.session_id,
                sender=payload.sender,
                text=payload.text,
                file_type=payload.file_type,
                file_url=payload.file_url,
            ),
            name=f"push:{payload.session_id}",
        )
        self.stats.push_dispatches += 1
        self._pending.add(task)
        task.add_done_callback(self._on_push_done)

    def _on_push_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("Push dispatch cancelled", task=task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            self.stats.push_dispatch_errors += 1
            logger.opt(exception=exc).error("Push dispatch failed", task=task.get_name())
            return
        report: DispatchReport = task.result()
        self.stats.push_delivered += report.delivered
        self.stats.push_pruned += report.pruned
        self.stats.push_failed += report.failed
        if report.attempted:
            logger.info(
                "Push dispatch finished",
                session_id=report.session_id,
                attempted=report.attempted,
                delivered=report.delivered,
                pruned=report.pruned,
                failed=report.failed,
            )

    @property
    def pending_pushes(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait until every push dispatch spawned so far has finished."""

        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def shutdown(self, timeout: float = 5.0) -> None:
        """Give outstanding pushes ``timeout`` seconds, then cancel the rest."""

        if not self._pending:
            return
        _, still_running = await asyncio.wait(list(self._pending), timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
