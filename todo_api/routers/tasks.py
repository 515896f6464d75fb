import uuid
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from todo_api import crud
from todo_api.database import get_db
from todo_api.dependencies import get_current_user_id
from todo_api.errors import bad_request, not_found
from todo_api.models.task import TaskStatus
from todo_api.schemas.task import Deleted, TaskCreate, TaskEnvelope, TaskOut, TaskPage, TaskUpdate

router = APIRouter(prefix="/api/tasks", tags=["tasks"], dependencies=[Depends(get_current_user_id)])


def _checked_id(task_id: str) -> str:
    try:
        return str(uuid.UUID(task_id))
    except ValueError:
        raise bad_request("invalid id")


def _envelope(task) -> TaskEnvelope:
    return TaskEnvelope(task=TaskOut.model_validate(task))


@router.post("", response_model=TaskEnvelope, status_code=201)
def create_task(task: TaskCreate, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    new = crud.create_task(
        db,
        user_id,
        title=task.title,
        description=task.description,
        status=task.status,
        due_date=task.due_date,
    )
    return _envelope(new)


@router.get("", response_model=TaskPage)
def list_tasks(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[TaskStatus] = Query(None),
    search: Optional[str] = Query(None, description="Case-insensitive match on title"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    result = crud.list_tasks(db, user_id, page=page, limit=limit, status=status, search=search)
    result["items"] = [TaskOut.model_validate(t) for t in result["items"]]
    return TaskPage(**result)


@router.get("/{task_id}", response_model=TaskEnvelope)
def get_task(task_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    task = crud.get_owned_task(db, user_id, _checked_id(task_id))
    if not task:
        raise not_found()
    return _envelope(task)


@router.patch("/{task_id}", response_model=TaskEnvelope)
def update_task(
    task_id: str,
    patch: Optional[TaskUpdate] = Body(None),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    task = crud.get_owned_task(db, user_id, _checked_id(task_id))
    if not task:
        raise not_found()
    # a missing body is an empty patch
    changes = patch.changes() if patch is not None else {}
    return _envelope(crud.update_task(db, task, changes))


@router.delete("/{task_id}", response_model=Deleted)
def delete_task(task_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    if not crud.delete_owned_task(db, user_id, _checked_id(task_id)):
        raise not_found()
    return Deleted()
