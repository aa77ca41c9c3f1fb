"""FastAPI application factory."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from sqlalchemy.orm import Session

from chatrelay.api.router import api_router
from chatrelay.config import settings
from chatrelay.services.push import PushDeliveryService, PushTransport, build_push_transport
from chatrelay.services.realtime import SessionConnectionRegistry
from chatrelay.services.relay import ChatRelayEngine


tags_metadata: List[dict[str, str]] = [
    {"name": "chats", "description": "Create chat sessions and read their history."},
    {"name": "users", "description": "Invite contacts with a personal chat link."},
    {"name": "uploads", "description": "Upload image and audio attachments."},
    {"name": "notifications", "description": "Register browsers for Web Push."},
    {"name": "realtime", "description": "WebSocket relay for live chat."},
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("Chat relay started", push_enabled=app.state.push_service.enabled)
    try:
        yield
    finally:
        await app.state.relay_engine.shutdown()
        logger.info("Chat relay stopped")


def create_app(
    session_factory: Optional[Callable[[], Session]] = None,
    push_transport: Optional[PushTransport] = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance."""

    if session_factory is None:
        from chatrelay.db.session import SessionLocal

        session_factory = SessionLocal
    if push_transport is None:
        push_transport = build_push_transport(settings)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Realtime chat relay with Web Push fan-out.",
        version="0.1.0",
        openapi_tags=tags_metadata,
        docs_url=f"{settings.API_PREFIX}/docs",
        redoc_url=f"{settings.API_PREFIX}/redoc",
        lifespan=lifespan,
    )

    registry = SessionConnectionRegistry()
    push_service = PushDeliveryService(
        session_factory,
        push_transport,
        client_url=settings.CLIENT_URL,
        max_concurrency=settings.PUSH_MAX_CONCURRENCY,
        timeout_seconds=settings.PUSH_TIMEOUT_SECONDS,
    )
    app.state.session_factory = session_factory
    app.state.registry = registry
    app.state.push_service = push_service
    app.state.relay_engine = ChatRelayEngine(session_factory, registry, push_service)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": jsonable_encoder(exc.errors()),
                "message": "Validation failed",
            },
        )

    app.include_router(api_router, prefix=settings.API_PREFIX)

    settings.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")
    return app


app = create_app()
