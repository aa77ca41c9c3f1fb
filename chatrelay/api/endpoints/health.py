"""Liveness endpoint with relay counters."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from chatrelay.api import deps
from chatrelay.services.realtime import SessionConnectionRegistry
from chatrelay.services.relay import ChatRelayEngine

router = APIRouter(tags=["health"])


@router.get("/health")
def health(
    registry: SessionConnectionRegistry = Depends(deps.get_connection_registry),
    engine: ChatRelayEngine = Depends(deps.get_relay_engine),
) -> dict[str, Any]:
    return {
        "status": "ok",
        "push_enabled": engine.push_service.enabled,
        "active_connections": registry.active_connections,
        "pending_pushes": engine.pending_pushes,
        "stats": engine.stats.as_dict(),
    }
