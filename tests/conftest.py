"""Pytest fixtures for API tests."""

import os
import tempfile
from collections.abc import AsyncGenerator, Generator

os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="chatrelay-uploads-"))
os.environ["VAPID_PRIVATE_KEY"] = ""

import pytest
try:  # pragma: no cover - optional dependency
    import pytest_asyncio
except ImportError:  # pragma: no cover
    pytest_asyncio = None  # type: ignore[assignment]
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from chatrelay.db import models  # noqa: F401  # Imported for side effects
from chatrelay.db.base import Base
from chatrelay.db.models import PushSubscription
from chatrelay.main import create_app
from chatrelay.services.push import PushDeliveryService
from chatrelay.services.realtime import SessionConnectionRegistry


@pytest.fixture()
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(db_engine):
    return sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=db_engine
    )


@pytest.fixture()
def broken_session_factory():
    """Sessions bound to a database without any tables, so every write fails."""

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        engine.dispose()


@pytest.fixture()
def db_session(session_factory) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def registry() -> SessionConnectionRegistry:
    return SessionConnectionRegistry()


@pytest.fixture()
def add_subscription(db_session):
    def _add(endpoint: str, session_id: str = "abc") -> PushSubscription:
        subscription = PushSubscription(
            endpoint=endpoint,
            keys={"p256dh": f"p256dh-{endpoint}", "auth": f"auth-{endpoint}"},
            session_id=session_id,
        )
        db_session.add(subscription)
        db_session.commit()
        return subscription

    return _add


@pytest.fixture()
def make_push_service(session_factory):
    def _make(transport, **kwargs) -> PushDeliveryService:
        kwargs.setdefault("client_url", "http://client.test")
        return PushDeliveryService(session_factory, transport, **kwargs)

    return _make


@pytest.fixture()
def client(session_factory) -> Generator[TestClient, None, None]:
    app = create_app(session_factory=session_factory)
    with TestClient(app) as test_client:
        yield test_client


if pytest_asyncio is not None:

    @pytest_asyncio.fixture()
    async def async_client(session_factory) -> AsyncGenerator["httpx.AsyncClient", None]:
        import httpx

        app = create_app(session_factory=session_factory)
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client

else:

    @pytest.fixture()
    def async_client():  # pragma: no cover - skip when dependency missing
        pytest.skip("pytest-asyncio is not installed")
