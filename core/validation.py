"""User-facing checks run before any account mutation.

Each check returns the message to show, or ``None`` when the input is fine.
"""
from email_validator import EmailNotValidError, validate_email
from sqlalchemy.orm import Session

from crud.user_crud import email_registered
from models.user import SUBSCRIPTION_EMAILS, SUBSCRIPTION_EMAILS_AND_REMINDERS, SUBSCRIPTION_NONE

MAX_EMAIL_LENGTH = 255
MIN_PASSWORD_LENGTH = 8
SUBSCRIPTION_VALUES = tuple(
    str(policy) for policy in (SUBSCRIPTION_NONE, SUBSCRIPTION_EMAILS, SUBSCRIPTION_EMAILS_AND_REMINDERS)
)

INVALID_EMAIL = "Please enter a valid email address."
EMAIL_TAKEN = "This email address is already registered."


def check_email(db: Session, email: str) -> str | None:
    if not email or len(email) > MAX_EMAIL_LENGTH:
        return INVALID_EMAIL
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return INVALID_EMAIL
    if email_registered(db, email.lower()):
        return EMAIL_TAKEN
    return None


def check_passwords(password_one: str, password_two: str) -> str | None:
    if password_one != password_two:
        return "The passwords do not match."
    if len(password_one) < MIN_PASSWORD_LENGTH:
        return f"Your password must be at least {MIN_PASSWORD_LENGTH} characters long."
    return None


def check_subscription(value: str) -> str | None:
    if value not in SUBSCRIPTION_VALUES:
        return "Please choose a valid subscription option."
    return None
