"""In-memory registry of live WebSocket connections grouped by chat session."""
from __future__ import annotations

import asyncio
import uuid
from collections import defaultdict
from typing import Any, Dict, Set

from fastapi import WebSocket
from loguru import logger


class SessionConnectionRegistry:
    """Track which live connections receive broadcasts for which sessions.

    Membership is process-local and never persisted. A connection joins
    sessions explicitly and leaves all of them when its socket goes away.
    Broadcasts to one session are serialised so every member observes them
    in the order they were issued; broadcasts to different sessions do not
    wait on each other.

    The registry has no capacity bound on connections or groups.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._sockets: Dict[str, WebSocket] = {}
        self._groups: Dict[str, Set[str]] = defaultdict(set)
        self._memberships: Dict[str, Set[str]] = defaultdict(set)
        self._send_locks: Dict[str, asyncio.Lock] = {}
        self._send_lock_users: Dict[str, int] = {}

    async def connect(self, websocket: WebSocket) -> str:
        """Accept the socket and return the connection identifier assigned to it."""

        await websocket.accept()
        connection_id = uuid.uuid4().hex
        async with self._lock:
            self._sockets[connection_id] = websocket
        logger.info("WebSocket connected", connection_id=connection_id)
        return connection_id

    async def join(self, connection_id: str, session_id: str) -> None:
        """Add the connection to the session's delivery group (idempotent)."""

        async with self._lock:
            if connection_id not in self._sockets:
                logger.warning(
                    "Join ignored for unknown connection",
                    connection_id=connection_id,
                    session_id=session_id,
                )
                return
            self._groups[session_id].add(connection_id)
            self._memberships[connection_id].add(session_id)
        logger.info("Client joined session", connection_id=connection_id, session_id=session_id)

    async def leave(self, connection_id: str) -> None:
        """Forget the connection and drop it from every group it had joined."""

        async with self._lock:
            self._sockets.pop(connection_id, None)
            session_ids = self._memberships.pop(connection_id, set())
            for session_id in session_ids:
                members = self._groups.get(session_id)
                if members is None:
                    continue
                members.discard(connection_id)
                if not members:
                    self._groups.pop(session_id, None)
        logger.info(
            "WebSocket disconnected",
            connection_id=connection_id,
            sessions=sorted(session_ids),
        )

    async def broadcast(self, session_id: str, message: dict[str, Any]) -> int:
        """Send ``message`` to every connection joined to ``session_id``.

        Returns the number of connections the message was handed to.
        """

        async with self._lock:
            targets = [
                (connection_id, self._sockets[connection_id])
                for connection_id in self._groups.get(session_id, ())
                if connection_id in self._sockets
            ]
            if not targets:
                return 0
            send_lock = self._send_locks.setdefault(session_id, asyncio.Lock())
            self._send_lock_users[session_id] = self._send_lock_users.get(session_id, 0) + 1

        delivered = 0
        try:
            async with send_lock:
                for connection_id, connection in targets:
                    try:
                        await connection.send_json(message)
                    except Exception as exc:
                        logger.warning(
                            "Failed to broadcast message",
                            connection_id=connection_id,
                            session_id=session_id,
                            error=str(exc),
                        )
                        continue
                    delivered += 1
        finally:
            async with self._lock:
                self._release_send_lock(session_id)
        return delivered

    def _release_send_lock(self, session_id: str) -> None:
        # Caller holds ``self._lock``. The lock is dropped once no broadcast holds or awaits it.
        remaining = self._send_lock_users.get(session_id, 0) - 1
        if remaining > 0:
            self._send_lock_users[session_id] = remaining
            return
        self._send_lock_users.pop(session_id, None)
        self._send_locks.pop(session_id, None)

    async def send_personal_message(self, connection_id: str, message: dict[str, Any]) -> None:
        """Send a payload to a single connection."""

        async with self._lock:
            connection = self._sockets.get(connection_id)
        if connection is None:
            return
        await connection.send_json(message)

    def connection_count(self, session_id: str) -> int:
        return len(self._groups.get(session_id, ()))

    def sessions_for(self, connection_id: str) -> set[str]:
        return set(self._memberships.get(connection_id, ()))

    @property
    def active_connections(self) -> int:
        return len(self._sockets)
