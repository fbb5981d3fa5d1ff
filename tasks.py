import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

import crud
from auth import CurrentUser, get_current_user
from database import get_db
from errors import NotFound, ValidationFailed
from models import Task, TaskStatus
from schemas import TaskCreate, TaskUpdate, ok, task_json

logger = logging.getLogger(__name__)

# every task route requires an authenticated caller
router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
    dependencies=[Depends(get_current_user)],
)


def _owned_task_or_404(db: Session, raw_id: str, user: CurrentUser) -> Task:
    task = crud.get_owned_task(db, crud.parse_task_id(raw_id), user.user_id)
    if task is None:
        raise NotFound("Task not found")
    return task


@router.post("", status_code=status.HTTP_201_CREATED)
def create_task(
    body: TaskCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    task = crud.create_task(
        db,
        owner_id=user.user_id,
        title=body.title,
        description=body.description,
        priority=body.priority,
        status=body.status,
        due_date=body.due_date,
    )
    logger.info("User %s created task %s", user.user_id, task.id)
    return ok({"message": "Task created successfully", "task": task_json(task)})


@router.get("")
def list_tasks(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    wanted = None
    if status_filter:
        try:
            wanted = TaskStatus(status_filter)
        except ValueError:
            raise ValidationFailed("Invalid status value")

    term = search if search and search.strip() else None
    tasks = crud.list_tasks(db, user.user_id, status=wanted, search=term)
    return ok({"count": len(tasks), "tasks": [task_json(t) for t in tasks]})


@router.get("/{task_id}")
def get_task(
    task_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    task = _owned_task_or_404(db, task_id, user)
    return ok({"task": task_json(task)})


@router.put("/{task_id}")
def update_task(
    task_id: str,
    body: TaskUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    task = _owned_task_or_404(db, task_id, user)
    task = crud.update_task(db, task, body.changes())
    return ok({"message": "Task updated successfully", "task": task_json(task)})


@router.delete("/{task_id}")
def delete_task(
    task_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    task = _owned_task_or_404(db, task_id, user)
    deleted = task_json(task)
    crud.delete_task(db, task)
    logger.info("User %s deleted task %s", user.user_id, deleted["id"])
    return ok({"message": "Task deleted successfully", "task": deleted})
