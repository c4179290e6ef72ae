from sqlalchemy.orm import Session
from models.admin_credential import AdminCredential


def get_credential(db: Session, email: str):
    return db.query(AdminCredential).filter(AdminCredential.email == email).first()


def upsert_refresh_token(db: Session, email: str, refresh_token: str) -> AdminCredential:
    cred = get_credential(db, email)
    if cred:
        cred.refresh_token = refresh_token
    else:
        cred = AdminCredential(email=email, refresh_token=refresh_token)
        db.add(cred)
    db.commit()
    db.refresh(cred)
    return cred


def get_sending_refresh_token(db: Session, email: str | None = None) -> str | None:
    """Refresh token of the given admin, or of the first one on record."""
    if email:
        cred = get_credential(db, email)
    else:
        cred = db.query(AdminCredential).order_by(AdminCredential.created_at).first()
    return cred.refresh_token if cred else None
