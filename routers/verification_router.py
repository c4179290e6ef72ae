from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from core.auth import require_session, require_verified
from core.database import get_db
from core.errors import AuthenticationError
from core.mailer import GmailMailer, get_mailer, queue_mail
from core.security import hash_password
from core.session_store import SessionKey, SessionStore, get_session_store
from core.validation import check_email, check_passwords
from core.workflows import (
    ACCOUNT_DELETION,
    ACCOUNT_VERIFICATION,
    EMAIL_CHANGE,
    PASSWORD_RESET,
    Workflow,
    WorkflowError,
)
from crud.user_crud import email_registered
from schemas.verification_schema import (
    CodeRequest,
    SendEmailChangeRequest,
    SendPasswordRequest,
    SendVerificationRequest,
    WorkflowResponse,
)

router = APIRouter(prefix="/verification", tags=["Verification"])

WRONG_CODE = "The code you entered is incorrect."


def _confirm(workflow: Workflow, body: CodeRequest, db: Session, store: SessionStore, message: str | None = None):
    session = require_session(store, body.session)
    if session is None:
        return WorkflowResponse(success=False)
    try:
        confirmed = workflow.confirm(db, store, session, body.code)
    except (WorkflowError, AuthenticationError) as e:
        return WorkflowResponse(success=False, message=e.message)
    if not confirmed:
        return WorkflowResponse(success=False, message=WRONG_CODE)
    return WorkflowResponse(success=True, message=message)


@router.post("/account/send", response_model=WorkflowResponse, response_model_exclude_none=True)
def send_verification_email(
    body: SendVerificationRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    mailer: GmailMailer = Depends(get_mailer),
):
    session = require_session(store, body.session)
    issued = ACCOUNT_VERIFICATION.start(session) if session is not None else None
    if issued is None:
        return WorkflowResponse(success=False)
    queue_mail(background_tasks, db, mailer, issued.recipient, issued.subject, issued.body)
    return WorkflowResponse(success=True, email=issued.recipient)


@router.post("/account/confirm", response_model=WorkflowResponse, response_model_exclude_none=True)
def verify_account(body: CodeRequest, db: Session = Depends(get_db), store: SessionStore = Depends(get_session_store)):
    return _confirm(ACCOUNT_VERIFICATION, body, db, store)


@router.post("/password/send", response_model=WorkflowResponse, response_model_exclude_none=True)
def send_password_email(
    body: SendPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    mailer: GmailMailer = Depends(get_mailer),
):
    """
    Start a password change, either from a logged-in session or, for a
    forgotten password, from the email address of a registered account.
    """
    if body.session:
        session = require_verified(store, body.session)
        if session is None:
            return WorkflowResponse(success=False)
    else:
        email = (body.email or "").strip().lower()
        if not email or not email_registered(db, email):
            return WorkflowResponse(success=False)
        session = None

    message = check_passwords(body.password1, body.password2)
    if message:
        return WorkflowResponse(success=False, message=message)

    if session is None:
        session = store.create().set(SessionKey.FORGOT_PASSWORD_EMAIL, email)
    issued = PASSWORD_RESET.start(session, {SessionKey.NEW_PASSWORD: hash_password(body.password1)})
    if issued is None:
        return WorkflowResponse(success=False)
    queue_mail(background_tasks, db, mailer, issued.recipient, issued.subject, issued.body)
    return WorkflowResponse(success=True, email=issued.recipient, session=session.id)


@router.post("/password/confirm", response_model=WorkflowResponse, response_model_exclude_none=True)
def change_password(body: CodeRequest, db: Session = Depends(get_db), store: SessionStore = Depends(get_session_store)):
    return _confirm(PASSWORD_RESET, body, db, store, message="Your password was successfully changed!")


@router.post("/email/send", response_model=WorkflowResponse, response_model_exclude_none=True)
def send_change_email(
    body: SendEmailChangeRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    mailer: GmailMailer = Depends(get_mailer),
):
    session = require_verified(store, body.session)
    if session is None:
        return WorkflowResponse(success=False)
    new_email = body.email.strip().lower()
    message = check_email(db, new_email)
    if message:
        return WorkflowResponse(success=False, message=message)
    issued = EMAIL_CHANGE.start(session, {SessionKey.NEW_EMAIL: new_email}, new_email=new_email)
    if issued is None:
        return WorkflowResponse(success=False)
    queue_mail(background_tasks, db, mailer, issued.recipient, issued.subject, issued.body)
    return WorkflowResponse(success=True, email=issued.recipient)


@router.post("/email/confirm", response_model=WorkflowResponse, response_model_exclude_none=True)
def change_email(body: CodeRequest, db: Session = Depends(get_db), store: SessionStore = Depends(get_session_store)):
    return _confirm(EMAIL_CHANGE, body, db, store)


@router.post("/delete/send", response_model=WorkflowResponse, response_model_exclude_none=True)
def send_delete_email(
    body: SendVerificationRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    mailer: GmailMailer = Depends(get_mailer),
):
    session = require_verified(store, body.session)
    issued = ACCOUNT_DELETION.start(session) if session is not None else None
    if issued is None:
        return WorkflowResponse(success=False)
    queue_mail(background_tasks, db, mailer, issued.recipient, issued.subject, issued.body)
    return WorkflowResponse(success=True, email=issued.recipient)


@router.post("/delete/confirm", response_model=WorkflowResponse, response_model_exclude_none=True)
def delete_account(body: CodeRequest, db: Session = Depends(get_db), store: SessionStore = Depends(get_session_store)):
    return _confirm(ACCOUNT_DELETION, body, db, store)
