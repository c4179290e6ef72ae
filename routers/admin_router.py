import logging

import requests
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core import table_editor
from core.auth import require_admin
from core.database import get_db
from core.mailer import GmailMailer, get_mailer, queue_mail
from core.session_store import SessionStore, get_session_store
from crud.admin_crud import upsert_refresh_token
from crud.user_crud import list_mailing_recipients
from schemas.admin_schema import (
    AddRowRequest,
    AdminResponse,
    ChangeRowRequest,
    GmailCodeRequest,
    RowRequest,
    SendEmailRequest,
    TableRequest,
)
from schemas.auth_schema import SessionRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

NOT_ALLOWED = AdminResponse(success=False)


def _failure(e: Exception) -> AdminResponse:
    message = str(getattr(e, "orig", None) or e)
    return AdminResponse(success=False, message=message)


@router.post("/tables/list", response_model=AdminResponse, response_model_exclude_none=True)
def get_database(body: TableRequest, db: Session = Depends(get_db), store: SessionStore = Depends(get_session_store)):
    cap = require_admin(store, body.session)
    if cap is None:
        return NOT_ALLOWED
    try:
        columns, rows, types = table_editor.list_table(cap, db, body.table)
    except (LookupError, ValueError, SQLAlchemyError) as e:
        return _failure(e)
    return AdminResponse(success=True, columns=columns, rows=rows, types=types)


@router.post("/tables/titles", response_model=AdminResponse, response_model_exclude_none=True)
def get_row_titles(body: TableRequest, db: Session = Depends(get_db), store: SessionStore = Depends(get_session_store)):
    cap = require_admin(store, body.session)
    if cap is None:
        return NOT_ALLOWED
    try:
        titles = table_editor.list_titles(cap, db, body.table)
    except (LookupError, ValueError, SQLAlchemyError) as e:
        return _failure(e)
    return AdminResponse(success=True, table=body.table, titles=titles)


@router.post("/rows/add", response_model=AdminResponse, response_model_exclude_none=True)
def add_row(body: AddRowRequest, db: Session = Depends(get_db), store: SessionStore = Depends(get_session_store)):
    cap = require_admin(store, body.session)
    if cap is None:
        return NOT_ALLOWED
    try:
        row_id, row = table_editor.insert_row(cap, db, body.table, body.names, body.values)
    except (LookupError, ValueError, SQLAlchemyError) as e:
        return _failure(e)
    return AdminResponse(success=True, message=f"Successfully added row {row_id}.", row=row)


@router.post("/rows/change", response_model=AdminResponse, response_model_exclude_none=True)
def change_row(body: ChangeRowRequest, db: Session = Depends(get_db), store: SessionStore = Depends(get_session_store)):
    cap = require_admin(store, body.session)
    if cap is None:
        return NOT_ALLOWED
    try:
        table_editor.update_field(cap, db, body.table, body.id, body.name, body.value)
    except (LookupError, SQLAlchemyError) as e:
        return _failure(e)
    return AdminResponse(success=True, message=f"Successfully updated row {body.id}.")


@router.post("/rows/delete", response_model=AdminResponse, response_model_exclude_none=True)
def delete_row(body: RowRequest, db: Session = Depends(get_db), store: SessionStore = Depends(get_session_store)):
    cap = require_admin(store, body.session)
    if cap is None:
        return NOT_ALLOWED
    try:
        table_editor.delete_row(cap, db, body.table, body.id)
    except (LookupError, SQLAlchemyError) as e:
        return _failure(e)
    return AdminResponse(success=True, message=f"Successfully deleted row {body.id}.", id=body.id)


@router.post("/rows/move-to-end", response_model=AdminResponse, response_model_exclude_none=True)
def move_row_to_end(body: RowRequest, db: Session = Depends(get_db), store: SessionStore = Depends(get_session_store)):
    cap = require_admin(store, body.session)
    if cap is None:
        return NOT_ALLOWED
    try:
        _, row = table_editor.move_to_end(cap, db, body.table, body.id)
    except (LookupError, SQLAlchemyError) as e:
        return _failure(e)
    return AdminResponse(
        success=True, message=f"Successfully moved row {body.id} to end.", row=row, old_id=body.id
    )


@router.post("/rows/move-to-start", response_model=AdminResponse, response_model_exclude_none=True)
def move_row_to_start(body: RowRequest, db: Session = Depends(get_db), store: SessionStore = Depends(get_session_store)):
    cap = require_admin(store, body.session)
    if cap is None:
        return NOT_ALLOWED
    try:
        _, row = table_editor.move_to_start(cap, db, body.table, body.id)
    except (LookupError, SQLAlchemyError) as e:
        return _failure(e)
    return AdminResponse(
        success=True, message=f"Successfully moved row {body.id} to start.", row=row, old_id=body.id
    )


@router.post("/gmail/auth-url")
def get_gmail_auth_url(
    body: SessionRequest,
    store: SessionStore = Depends(get_session_store),
    mailer: GmailMailer = Depends(get_mailer),
):
    if require_admin(store, body.session) is None:
        return {"url": ""}
    return {"url": mailer.authorization_url()}


@router.post("/gmail/code")
def send_gmail_code(
    body: GmailCodeRequest,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    mailer: GmailMailer = Depends(get_mailer),
):
    """Exchange the OAuth code from the consent screen and store the admin's refresh token."""
    cap = require_admin(store, body.session)
    if cap is None:
        return {"success": False}
    try:
        refresh_token = mailer.exchange_auth_code(body.code)
    except (requests.RequestException, ValueError):
        logger.exception("Gmail authorization code exchange failed")
        return {"success": False, "message": "Could not authorize Gmail."}
    upsert_refresh_token(db, cap.session.email, refresh_token)
    return {"success": True}


@router.post("/email/send")
def send_email(
    body: SendEmailRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    mailer: GmailMailer = Depends(get_mailer),
):
    if require_admin(store, body.session) is None:
        return {"success": False}
    if body.recipients == "all_users":
        recipients = list_mailing_recipients(db)
    elif body.recipient:
        recipients = [body.recipient]
    else:
        return {"success": False, "message": "Please choose a recipient."}
    if not queue_mail(background_tasks, db, mailer, recipients, body.subject, body.body):
        return {"success": False, "message": "Email sending has not been authorized yet."}
    return {"success": True}
