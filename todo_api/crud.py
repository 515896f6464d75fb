"""Store queries for users and tasks.

Task lookups always go through ``owned_tasks`` so every read, update and
delete is filtered by the caller's user id as well as the task id.
"""

from math import ceil
from typing import Optional

from sqlalchemy.orm import Session

from todo_api.models.task import Task, TaskStatus
from todo_api.models.user import User


def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower()).first()


def create_user(db: Session, email: str, password_hash: str, name: str = "") -> User:
    user = User(email=email.lower(), password_hash=password_hash, name=name or "")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def owned_tasks(db: Session, owner_id: str):
    return db.query(Task).filter(Task.owner_id == owner_id)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def create_task(db: Session, owner_id: str, title: str, description: str = "",
                status: TaskStatus = TaskStatus.TODO, due_date=None) -> Task:
    task = Task(owner_id=owner_id, title=title, description=description or "",
                status=status, due_date=due_date)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def list_tasks(db: Session, owner_id: str, page: int = 1, limit: int = 10,
               status: Optional[TaskStatus] = None, search: Optional[str] = None) -> dict:
    """Return one page of the owner's tasks, newest first, as {items,page,limit,total,pages}."""
    query = owned_tasks(db, owner_id)
    if status is not None:
        query = query.filter(Task.status == status)
    if search:
        query = query.filter(Task.title.ilike(f"%{_escape_like(search)}%", escape="\\"))
    total = query.count()
    items = (
        query.order_by(Task.created_at.desc(), Task.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {"items": items, "page": page, "limit": limit, "total": total, "pages": ceil(total / limit)}


def get_owned_task(db: Session, owner_id: str, task_id: str) -> Optional[Task]:
    return owned_tasks(db, owner_id).filter(Task.id == task_id).first()


def update_task(db: Session, task: Task, changes: dict) -> Task:
    # None for due_date means "clear"; other keys are only present when set
    for name, value in changes.items():
        setattr(task, name, value)
    db.commit()
    db.refresh(task)
    return task


def delete_owned_task(db: Session, owner_id: str, task_id: str) -> bool:
    deleted = owned_tasks(db, owner_id).filter(Task.id == task_id).delete(synchronize_session=False)
    db.commit()
    return deleted > 0
