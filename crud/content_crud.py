from datetime import date

from sqlalchemy import String, cast
from sqlalchemy.orm import Session

from models.article import Article, Song
from models.calendar_event import CalendarEvent


def get_current_article(db: Session, today: date | None = None):
    """The article whose expiry lies furthest in the future, if any is still running."""
    today = today or date.today()
    return (
        db.query(Article)
        .filter(Article.expiry > today)
        .order_by(Article.expiry.desc(), Article.id)
        .first()
    )


def list_songs_for_article(db: Session, title: str):
    return db.query(Song).filter(Song.article == title).order_by(Song.id).all()


def list_events_for_month(db: Session, year_month: str):
    return (
        db.query(CalendarEvent)
        .filter(cast(CalendarEvent.date, String).like(f"{year_month}%"))
        .order_by(CalendarEvent.date, CalendarEvent.id)
        .all()
    )
