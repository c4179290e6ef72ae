import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.auth import refresh_session, require_session
from core.database import get_db
from core.errors import AuthenticationError
from core.security import hash_password
from core.session_store import SessionStore, get_session_store
from core.validation import EMAIL_TAKEN, check_email, check_passwords
from crud.user_crud import create_user
from schemas.auth_schema import AuthResponse, LoginRequest, SessionRequest, SignupRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/signup", response_model=AuthResponse, response_model_exclude_none=True)
def signup(body: SignupRequest, db: Session = Depends(get_db), store: SessionStore = Depends(get_session_store)):
    """
    Create an unverified account and log it in. A password is optional at
    signup; without one the account is reached through the password reset flow.
    """
    email = body.email.strip().lower()
    message = check_email(db, email)
    if message:
        return AuthResponse(success=False, message=message)
    password_hash = ""
    if body.password1 is not None or body.password2 is not None:
        message = check_passwords(body.password1 or "", body.password2 or "")
        if message:
            return AuthResponse(success=False, message=message)
        password_hash = hash_password(body.password1)

    try:
        user = create_user(db, email, password_hash)
    except IntegrityError:
        # Registered by a concurrent signup after the check above
        db.rollback()
        logger.warning("Signup for an address registered meanwhile")
        return AuthResponse(success=False, message=EMAIL_TAKEN)
    logger.info("Created account id=%s", user.id)
    session = store.create()
    try:
        verified = refresh_session(db, session, "email", email)
    except AuthenticationError as e:
        return AuthResponse(success=False, message=e.message)
    return AuthResponse(success=True, session=session.id, verified=verified)


@router.post("/login", response_model=AuthResponse, response_model_exclude_none=True)
def login(body: LoginRequest, db: Session = Depends(get_db), store: SessionStore = Depends(get_session_store)):
    email = body.email.strip().lower()
    session = store.create()
    try:
        verified = refresh_session(db, session, "email", email, password=body.password)
    except AuthenticationError as e:
        return AuthResponse(success=False, message=e.message)
    return AuthResponse(success=True, session=session.id, verified=verified)


@router.post("/logout")
def logout(body: SessionRequest, store: SessionStore = Depends(get_session_store)):
    session = require_session(store, body.session)
    if session is not None:
        store.delete(session)
    return {}


@router.post("/refresh")
def refresh(body: SessionRequest, db: Session = Depends(get_db), store: SessionStore = Depends(get_session_store)):
    """Reload the session from the account row, e.g. after an admin edited it."""
    session = require_session(store, body.session)
    if session is not None and session.user_id is not None:
        try:
            refresh_session(db, session, "id", str(session.user_id))
        except AuthenticationError:
            # The account was deleted underneath this session
            store.delete(session)
    return {}
