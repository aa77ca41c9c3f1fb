"""Custom exception classes and error handling utilities."""
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from loguru import logger


class ChatRelayException(Exception):
    """Base exception for the application."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class UploadError(ChatRelayException):
    """Rejected file uploads."""
    pass


class NotFoundError(ChatRelayException):
    """Lookup of a missing record."""
    pass


class PushConfigurationError(ChatRelayException):
    """Web Push is requested but VAPID credentials are missing."""
    pass


def handle_database_error(error: Exception, message: str = "Database operation failed") -> HTTPException:
    """Handle database errors and return appropriate HTTP response."""
    logger.error("Database error", error=str(error), message=message)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=message,
    )


def handle_upload_error(error: UploadError) -> HTTPException:
    """Handle rejected uploads."""
    logger.warning("Upload rejected", reason=error.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)


def handle_not_found_error(error: NotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
