"""
Emailed one-time code workflows.

Each sensitive account change follows the same path: a 16 character code is
stored in the visitor's session together with the pending change, the code is
mailed to the account, and the change is applied only when the same session
submits the same code. Nothing is persisted until confirmation; an unconfirmed
change disappears with the session.

Confirmation order is: apply to the database, clear the code and pending
keys, reload the session from the database. A crash between the first two
steps leaves a code that re-applies the same change, which is harmless for
every workflow below. After a successful confirm the code is gone, so
submitting it again is rejected.

Code attempts are not counted or throttled.
"""
import logging
import secrets
import string
from dataclasses import dataclass, field
from typing import Callable, NamedTuple, Optional

from sqlalchemy.orm import Session

from core.auth import refresh_session
from core.config import settings
from core.session_store import SessionKey, SessionStore, UserSession
from crud.user_crud import delete_user, get_user_by_email, mark_verified, set_email, set_password

logger = logging.getLogger(__name__)

CODE_LENGTH = 16
_CODE_ALPHABET = string.ascii_letters + string.digits

_FOOTER = (
    "\r\n\r\nThis message was sent by the {site} automated system. "
    "If you did not make this request please contact {support}"
)


class WorkflowError(Exception):
    """A confirmed change that can no longer be applied."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class IssuedCode(NamedTuple):
    code: str
    recipient: str
    subject: str
    body: str


def generate_verification_code() -> str:
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(CODE_LENGTH))


@dataclass(frozen=True)
class Workflow:
    name: str
    code_key: SessionKey
    recipient_keys: tuple[SessionKey, ...]
    subject: str
    template: str
    may_start: Callable[[UserSession], bool]
    may_confirm: Callable[[UserSession], bool]
    # Writes the pending change; returns the (key, value) to reload the session from
    apply: Callable[[Session, UserSession], Optional[tuple[str, str]]]
    payload_keys: tuple[SessionKey, ...] = ()
    ends_session: Callable[[UserSession], bool] = field(default=lambda session: False)

    def recipient(self, session: UserSession) -> Optional[str]:
        for key in self.recipient_keys:
            value = session.get(key)
            if value:
                return value
        return None

    def start(
        self,
        session: UserSession,
        payload: Optional[dict[SessionKey, str]] = None,
        **context,
    ) -> Optional[IssuedCode]:
        if not self.may_start(session):
            return None
        for key, value in (payload or {}).items():
            session.set(key, value)
        recipient = self.recipient(session)
        if not recipient:
            return None
        code = generate_verification_code()
        session.set(self.code_key, code)
        body = (self.template + _FOOTER).format(
            code=code, site=settings.SITE_NAME, support=settings.SUPPORT_EMAIL, **context
        )
        logger.info("Issued %s code", self.name)
        return IssuedCode(code, recipient, self.subject.format(site=settings.SITE_NAME), body)

    def confirm(self, db: Session, store: SessionStore, session: UserSession, code: str) -> bool:
        if not self.may_confirm(session):
            return False
        expected = session.get(self.code_key)
        if expected is None or not secrets.compare_digest(expected.encode(), (code or "").encode()):
            logger.warning("Rejected %s code: mismatch", self.name)
            return False

        ends = self.ends_session(session)
        reload_from = self.apply(db, session)
        for key in (self.code_key, *self.payload_keys):
            session.unset(key)
        if reload_from is not None:
            refresh_session(db, session, *reload_from)
        if ends:
            store.delete(session)
        logger.info("Confirmed %s", self.name)
        return True


def _apply_account_verification(db: Session, session: UserSession):
    email = session.get(SessionKey.NOT_VERIFIED_EMAIL)
    mark_verified(db, email)
    return ("email", email)


def _apply_password_reset(db: Session, session: UserSession):
    email = session.email or session.get(SessionKey.FORGOT_PASSWORD_EMAIL)
    set_password(db, email, session.get(SessionKey.NEW_PASSWORD))
    return None


def _apply_email_change(db: Session, session: UserSession):
    user_id = session.user_id
    new_email = session.get(SessionKey.NEW_EMAIL)
    owner = get_user_by_email(db, new_email)
    if owner is not None and owner.id != user_id:
        raise WorkflowError("This email address is already registered.")
    set_email(db, user_id, new_email)
    return ("id", str(user_id))


def _apply_account_deletion(db: Session, session: UserSession):
    delete_user(db, session.user_id)
    return None


def _verified(session: UserSession) -> bool:
    return session.is_verified


def _anonymous_reset(session: UserSession) -> bool:
    return not session.is_verified and session.get(SessionKey.FORGOT_PASSWORD_EMAIL) is not None


ACCOUNT_VERIFICATION = Workflow(
    name="account verification",
    code_key=SessionKey.VERIFICATION_CODE,
    recipient_keys=(SessionKey.NOT_VERIFIED_EMAIL,),
    subject="Verify your {site} account",
    template=(
        "Hello,\r\nYou requested a verification of your email address by logging in. "
        "Please copy this code and return to {site}'s website: {code}"
    ),
    may_start=lambda session: session.get(SessionKey.VERIFIED) == "0",
    may_confirm=lambda session: session.get(SessionKey.VERIFIED) == "0",
    apply=_apply_account_verification,
    payload_keys=(SessionKey.NOT_VERIFIED_EMAIL,),
)

PASSWORD_RESET = Workflow(
    name="password reset",
    code_key=SessionKey.PASSWORD_CHANGE_CODE,
    recipient_keys=(SessionKey.EMAIL, SessionKey.FORGOT_PASSWORD_EMAIL),
    subject="Verify your Password Change Request",
    template=(
        "Hello,\r\nYou requested a change of your password. "
        "Please copy this code and return to {site}'s website: {code}"
    ),
    may_start=lambda session: _verified(session) or _anonymous_reset(session),
    may_confirm=lambda session: _verified(session) or _anonymous_reset(session),
    apply=_apply_password_reset,
    payload_keys=(SessionKey.NEW_PASSWORD, SessionKey.FORGOT_PASSWORD_EMAIL),
    ends_session=_anonymous_reset,
)

EMAIL_CHANGE = Workflow(
    name="email change",
    code_key=SessionKey.EMAIL_CHANGE_CODE,
    recipient_keys=(SessionKey.EMAIL,),
    subject="Verify your Email Change Request",
    template=(
        "Hello,\r\nYou requested a change of your email address to {new_email}. "
        "Please copy this code and return to {site}'s website: {code}"
    ),
    may_start=_verified,
    may_confirm=_verified,
    apply=_apply_email_change,
    payload_keys=(SessionKey.NEW_EMAIL,),
)

ACCOUNT_DELETION = Workflow(
    name="account deletion",
    code_key=SessionKey.DELETE_CODE,
    recipient_keys=(SessionKey.EMAIL,),
    subject="Verify your Account Deletion Request",
    template=(
        "Hello,\r\nYou requested a deletion of your {site} account. "
        "Please copy this code and return to {site}'s website: {code}"
    ),
    may_start=_verified,
    may_confirm=_verified,
    apply=_apply_account_deletion,
    ends_session=lambda session: True,
)
