from sqlalchemy import Column, Date, Integer, String, Text, Index
from models.base import Base


class Article(Base):
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    text = Column(Text, nullable=False, default="")
    expiry = Column(Date, nullable=False)


class Song(Base):
    __tablename__ = "songs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    link = Column(String(512), nullable=False, default="")
    role = Column(String(255), nullable=False, default="")
    article = Column(String(255), nullable=False)

Index("idx_songs_article", Song.article)
