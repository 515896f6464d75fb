import enum

from sqlalchemy import Column, String, ForeignKey, Text, DateTime, Enum, Index
from sqlalchemy.orm import relationship
from todo_api.database import Base
from todo_api.models.user import _new_id, _now


class TaskStatus(str, enum.Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (Index("ix_tasks_owner_created", "owner_id", "created_at"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(
        Enum(TaskStatus, values_callable=lambda e: [m.value for m in e], name="task_status"),
        nullable=False,
        default=TaskStatus.TODO,
        index=True,
    )
    due_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    owner = relationship("User", back_populates="tasks")
