from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auth import require_verified
from core.database import get_db
from core.session_store import SessionKey, SessionStore, get_session_store
from core.validation import check_subscription
from crud.user_crud import set_subscription_policy
from schemas.account_schema import AccountDetailsRequest, SubscriptionRequest

router = APIRouter(prefix="/account", tags=["Account"])

ALLOWED_DETAILS = (SessionKey.EMAIL, SessionKey.ADMIN, SessionKey.SUBSCRIPTION_POLICY)

SUBSCRIPTION_MESSAGES = (
    "You are now unsubscribed from receiving emails.",
    "You are now subscribed to receive emails.",
    "You are now subscribed to receive emails and reminders.",
)


@router.post("/details")
def details(body: AccountDetailsRequest, store: SessionStore = Depends(get_session_store)):
    session = require_verified(store, body.session)
    if session is None:
        return {"session": "none"}
    return {key.value: session.get(key) for key in ALLOWED_DETAILS if key.value in body.details}


@router.post("/subscription")
def change_subscription(
    body: SubscriptionRequest,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
):
    session = require_verified(store, body.session)
    if session is None:
        return {"success": False}
    message = check_subscription(body.subscription)
    if message:
        return {"success": False, "message": message}
    policy = int(body.subscription)
    set_subscription_policy(db, session.user_id, policy)
    session.set(SessionKey.SUBSCRIPTION_POLICY, policy)
    return {"success": True, "message": SUBSCRIPTION_MESSAGES[policy]}
