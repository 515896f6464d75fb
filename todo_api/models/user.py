import uuid
from datetime import datetime, UTC

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from todo_api.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(254), unique=True, index=True, nullable=False)
    password_hash = Column(String(128), nullable=False)
    name = Column(String(60), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    tasks = relationship("Task", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True)
