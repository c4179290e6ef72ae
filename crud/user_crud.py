from sqlalchemy.orm import Session
from models.user import User


def get_user(db: Session, user_id: int):
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str):
    return db.query(User).filter(User.email == email).first()


def email_registered(db: Session, email: str) -> bool:
    return db.query(User.id).filter(User.email == email).first() is not None


def create_user(db: Session, email: str, password_hash: str = "") -> User:
    user = User(
        email=email,
        password=password_hash,
        verified=0,
        admin=0,
        subscription_policy=1,
        invalid_email=0,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _update_where(db: Session, criterion, **values) -> int:
    count = db.query(User).filter(criterion).update(values, synchronize_session=False)
    db.commit()
    return count


def mark_verified(db: Session, email: str) -> int:
    return _update_where(db, User.email == email, verified=1)


def set_password(db: Session, email: str, password_hash: str) -> int:
    return _update_where(db, User.email == email, password=password_hash)


def set_email(db: Session, user_id: int, email: str) -> int:
    return _update_where(db, User.id == user_id, email=email)


def set_subscription_policy(db: Session, user_id: int, policy: int) -> int:
    return _update_where(db, User.id == user_id, subscription_policy=policy)


def delete_user(db: Session, user_id: int) -> bool:
    user = get_user(db, user_id)
    if not user:
        return False
    db.delete(user)
    db.commit()
    return True


def list_mailing_recipients(db: Session) -> list[str]:
    rows = (
        db.query(User.email)
        .filter(User.subscription_policy >= 1, User.invalid_email == 0, User.verified == 1)
        .order_by(User.id)
        .all()
    )
    return [r.email for r in rows]
