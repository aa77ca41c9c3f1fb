"""Shared API dependencies."""
from __future__ import annotations

from collections.abc import Generator

from sqlalchemy.orm import Session
from starlette.requests import HTTPConnection

from chatrelay.config import Settings, get_settings
from chatrelay.services.realtime import SessionConnectionRegistry
from chatrelay.services.relay import ChatRelayEngine


def get_db(connection: HTTPConnection) -> Generator[Session, None, None]:
    """Yield a database session for request lifetime."""

    db = connection.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_app_settings() -> Settings:
    return get_settings()


def get_connection_registry(connection: HTTPConnection) -> SessionConnectionRegistry:
    """Return the registry owned by the running application."""

    return connection.app.state.registry


def get_relay_engine(connection: HTTPConnection) -> ChatRelayEngine:
    return connection.app.state.relay_engine
