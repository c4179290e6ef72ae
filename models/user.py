from sqlalchemy import Column, Integer, String
from models.base import Base

# Subscription policies
SUBSCRIPTION_NONE = 0
SUBSCRIPTION_EMAILS = 1
SUBSCRIPTION_EMAILS_AND_REMINDERS = 2


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False, default="")
    verified = Column(Integer, nullable=False, default=0)
    admin = Column(Integer, nullable=False, default=0)
    subscription_policy = Column(Integer, nullable=False, default=SUBSCRIPTION_EMAILS)
    invalid_email = Column(Integer, nullable=False, default=0)
