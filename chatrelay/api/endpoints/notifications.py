from fastapi import APIRouter, Depends, Header
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chatrelay.api import deps
from chatrelay.config import Settings
from chatrelay.schemas import PushSubscriptionCreate, VapidPublicKey
from chatrelay.services.subscriptions import SubscriptionService
from chatrelay.utils.exceptions import handle_database_error

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/vapid-public-key", response_model=VapidPublicKey)
def get_vapid_public_key(settings: Settings = Depends(deps.get_app_settings)):
    return VapidPublicKey(public_key=settings.VAPID_PUBLIC_KEY)


@router.post("/subscribe")
def subscribe(
    subscription: PushSubscriptionCreate,
    user_agent: str | None = Header(default=None),
    db: Session = Depends(deps.get_db),
):
    try:
        SubscriptionService(db).subscribe(subscription, user_agent)
    except SQLAlchemyError as exc:
        raise handle_database_error(exc, "Could not save subscription") from exc
    return {"status": "success"}
