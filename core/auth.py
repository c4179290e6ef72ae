import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from core.errors import AuthenticationError
from core.security import password_matches
from core.session_store import SessionKey, SessionStore, UserSession
from crud.user_crud import get_user, get_user_by_email

logger = logging.getLogger(__name__)

WRONG_PASSWORD = "Wrong password, please try again."
NOT_REGISTERED = "This email address is not registered. Please create a new account."


@dataclass(frozen=True)
class AdminCapability:
    """Proof that the holder's session carried the admin flag when checked."""

    session: UserSession


def require_session(store: SessionStore, session_id: Optional[str]) -> Optional[UserSession]:
    return store.lookup(session_id)


def require_verified(store: SessionStore, session_id: Optional[str]) -> Optional[UserSession]:
    session = store.lookup(session_id)
    if session is None or not session.is_verified:
        return None
    return session


def require_admin(store: SessionStore, session_id: Optional[str]) -> Optional[AdminCapability]:
    session = store.lookup(session_id)
    if session is None or not session.is_admin:
        if session is not None:
            logger.warning("Admin operation refused for non-admin session")
        return None
    return AdminCapability(session=session)


def refresh_session(
    db: Session,
    session: UserSession,
    key: str,
    value: str,
    password: Optional[str] = None,
) -> bool:
    """
    Load the user identified by ``key`` (``"email"`` or ``"id"``) into the session.
    Returns True for a verified account, False for one still pending verification.
    Raises AuthenticationError for an unknown account or a wrong password.
    """
    if key == "email":
        user = get_user_by_email(db, value)
    elif key == "id":
        user = get_user(db, int(value))
    else:
        raise ValueError(f"cannot look users up by {key!r}")

    if not user:
        raise AuthenticationError(NOT_REGISTERED)
    if password is not None and not password_matches(password, user.password):
        logger.info("Wrong password for user id=%s", user.id)
        raise AuthenticationError(WRONG_PASSWORD)

    session.set(SessionKey.ID, user.id).set(SessionKey.INVALID_EMAIL, user.invalid_email)
    if user.verified == 1:
        (
            session.set(SessionKey.VERIFIED, "1")
            .set(SessionKey.EMAIL, user.email)
            .set(SessionKey.ADMIN, user.admin)
            .set(SessionKey.SUBSCRIPTION_POLICY, user.subscription_policy)
        )
        return True
    session.set(SessionKey.VERIFIED, "0").set(SessionKey.NOT_VERIFIED_EMAIL, user.email)
    return False
