"""User management endpoints."""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chatrelay.api import deps
from chatrelay.config import Settings
from chatrelay.db.models.user import User
from chatrelay.schemas import UserCreate, UserRead
from chatrelay.services.users import UserNotFoundError, UserService
from chatrelay.utils.exceptions import handle_database_error, handle_not_found_error

router = APIRouter(tags=["users"])


@router.post("/create-user", response_model=UserRead)
def create_user(
    payload: UserCreate,
    db: Session = Depends(deps.get_db),
    settings: Settings = Depends(deps.get_app_settings),
) -> User:
    """Create a user and the chat session their invitation link points to."""

    try:
        return UserService(db, settings.CLIENT_URL).create(payload)
    except SQLAlchemyError as exc:
        raise handle_database_error(exc, "Could not create user") from exc


@router.get("/users", response_model=list[UserRead])
def list_users(
    db: Session = Depends(deps.get_db),
    settings: Settings = Depends(deps.get_app_settings),
) -> list[User]:
    try:
        return UserService(db, settings.CLIENT_URL).list_users()
    except SQLAlchemyError as exc:
        raise handle_database_error(exc, "Could not fetch users") from exc


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: uuid.UUID,
    db: Session = Depends(deps.get_db),
    settings: Settings = Depends(deps.get_app_settings),
) -> Response:
    try:
        UserService(db, settings.CLIENT_URL).delete(user_id)
    except UserNotFoundError as exc:
        raise handle_not_found_error(exc) from exc
    except SQLAlchemyError as exc:
        raise handle_database_error(exc, "Failed to delete user") from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
