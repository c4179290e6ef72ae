import base64
import logging
import urllib.parse
from email.message import EmailMessage
from functools import lru_cache

import requests
from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from core.config import settings
from crud.admin_crud import get_sending_refresh_token

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GMAIL_SEND_URL = "https://gmail.googleapis.com/gmail/v1/users/me/messages/send"
GMAIL_SCOPE = "https://mail.google.com/"


class GmailMailer:
    """Sends mail through the Gmail API on behalf of an administrator account."""

    def __init__(self, client_id: str, client_secret: str, redirect_uri: str, timeout: float = 30):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout

    def authorization_url(self) -> str:
        params = {
            "scope": GMAIL_SCOPE,
            "include_granted_scopes": "true",
            "prompt": "consent",
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "client_id": self.client_id,
            "access_type": "offline",
        }
        return GOOGLE_AUTH_URL + "?" + urllib.parse.urlencode(params)

    def _token_request(self, data: dict) -> dict:
        resp = requests.post(
            GOOGLE_TOKEN_URL,
            data={"client_id": self.client_id, "client_secret": self.client_secret, **data},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def exchange_auth_code(self, code: str) -> str:
        tokens = self._token_request(
            {"code": code, "grant_type": "authorization_code", "redirect_uri": self.redirect_uri}
        )
        refresh_token = tokens.get("refresh_token")
        if not refresh_token:
            raise ValueError("No refresh token returned")
        return refresh_token

    def access_token_for(self, refresh_token: str) -> str:
        tokens = self._token_request({"refresh_token": refresh_token, "grant_type": "refresh_token"})
        access_token = tokens.get("access_token")
        if not access_token:
            raise ValueError("No access token returned")
        return access_token

    def send_message(self, sender: str, to: str, subject: str, body: str, access_token: str) -> None:
        msg = EmailMessage()
        if sender:
            msg["From"] = sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)
        raw = base64.urlsafe_b64encode(msg.as_bytes()).decode("ascii")
        resp = requests.post(
            GMAIL_SEND_URL,
            json={"raw": raw},
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=self.timeout,
        )
        resp.raise_for_status()


@lru_cache
def get_mailer() -> GmailMailer:
    return GmailMailer(
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        redirect_uri=settings.GMAIL_REDIRECT_URI,
    )


def deliver(mailer: GmailMailer, refresh_token: str, recipients: list[str], subject: str, body: str) -> None:
    """Background task: mint an access token and send one message per recipient."""
    try:
        access_token = mailer.access_token_for(refresh_token)
    except (requests.RequestException, ValueError):
        logger.exception("Could not obtain a Gmail access token; %d message(s) dropped", len(recipients))
        return
    for to in recipients:
        try:
            mailer.send_message(settings.MAIL_FROM, to, subject, body, access_token)
            logger.info("Sent %r to %s", subject, to)
        except requests.RequestException:
            logger.exception("Sending %r to %s failed", subject, to)


def queue_mail(
    background_tasks: BackgroundTasks,
    db: Session,
    mailer: GmailMailer,
    recipients: list[str] | str,
    subject: str,
    body: str,
) -> bool:
    if isinstance(recipients, str):
        recipients = [recipients]
    refresh_token = get_sending_refresh_token(db)
    if not refresh_token:
        logger.warning("No administrator has authorized Gmail; not sending %r", subject)
        return False
    background_tasks.add_task(deliver, mailer, refresh_token, list(recipients), subject, body)
    return True
