import os

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.config import settings
from core.database import get_db
from crud.content_crud import get_current_article, list_events_for_month, list_songs_for_article
from schemas.content_schema import ArticleResponse, CalendarEventResponse, ImageListResponse, SongResponse

router = APIRouter(prefix="/content", tags=["Content"])


@router.get("/songs", response_model=ArticleResponse)
def get_songs(db: Session = Depends(get_db)):
    """The running article and its songs; an empty title when none is running."""
    article = get_current_article(db)
    if not article:
        return ArticleResponse(title="")
    songs = list_songs_for_article(db, article.title)
    return ArticleResponse(
        title=article.title,
        text=article.text,
        songs=[SongResponse.model_validate(s) for s in songs],
    )


@router.get("/images", response_model=ImageListResponse)
def get_image_list():
    if not os.path.isdir(settings.IMAGES_DIR):
        return ImageListResponse(images=[])
    names = sorted(
        name for name in os.listdir(settings.IMAGES_DIR)
        if os.path.isfile(os.path.join(settings.IMAGES_DIR, name))
    )
    return ImageListResponse(images=names)


@router.get("/calendar", response_model=list[CalendarEventResponse])
def get_calendar_events(year_month: str = Query(..., pattern=r"^\d{4}-\d{2}$"), db: Session = Depends(get_db)):
    return list_events_for_month(db, year_month)
