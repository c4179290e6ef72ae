import datetime

from pydantic import BaseModel, field_serializer


class SongResponse(BaseModel):
    name: str
    link: str
    role: str

    model_config = {"from_attributes": True}


class ArticleResponse(BaseModel):
    title: str
    text: str = ""
    songs: list[SongResponse] = []


class CalendarEventResponse(BaseModel):
    id: int
    title: str
    date: datetime.date
    start_time: str
    end_time: str
    notes: str

    model_config = {"from_attributes": True}

    @field_serializer("date")
    def _format_date(self, value: datetime.date) -> str:
        return value.strftime("%Y-%m-%d")


class ImageListResponse(BaseModel):
    images: list[str]
