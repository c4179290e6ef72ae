from sqlalchemy import Column, Date, Integer, String, Text
from models.base import Base


class CalendarEvent(Base):
    __tablename__ = "calendar"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(32), nullable=False, default="")
    end_time = Column(String(32), nullable=False, default="")
    notes = Column(Text, nullable=False, default="")
