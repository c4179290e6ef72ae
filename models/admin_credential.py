from sqlalchemy import Column, String
from models.base import Base, TimestampMixin


class AdminCredential(Base, TimestampMixin):
    __tablename__ = "admin"

    email = Column(String(255), primary_key=True)
    refresh_token = Column(String(1024), nullable=False)
