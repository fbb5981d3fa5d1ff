"""Store access for users and tasks.

Every task lookup that acts on a single record goes through
``get_owned_task`` so a task that exists but belongs to someone else is
indistinguishable from one that does not exist.
"""

import uuid
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from errors import Conflict, ValidationFailed
from models import Task, TaskPriority, TaskStatus, User, utcnow


def parse_task_id(raw: str) -> str:
    """Canonical form of a task id; malformed ids are a client error."""
    try:
        return str(uuid.UUID(raw))
    except (ValueError, AttributeError, TypeError):
        raise ValidationFailed("Invalid task ID")


# -------------------------------
# Users
# -------------------------------

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def create_user(db: Session, email: str, password_hash: str) -> User:
    if get_user_by_email(db, email):
        raise Conflict("User already exists")

    user = User(email=email, password_hash=password_hash)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent signup for the same email
        db.rollback()
        raise Conflict("User already exists")
    db.refresh(user)
    return user


# -------------------------------
# Tasks
# -------------------------------

def create_task(
    db: Session,
    owner_id: str,
    title: str,
    description: Optional[str] = None,
    priority: TaskPriority = TaskPriority.MEDIUM,
    status: TaskStatus = TaskStatus.TODO,
    due_date=None,
) -> Task:
    task = Task(
        title=title,
        description=description,
        user_id=owner_id,
        priority=priority,
        status=status,
        due_date=due_date,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def list_tasks(
    db: Session,
    owner_id: str,
    status: Optional[TaskStatus] = None,
    search: Optional[str] = None,
) -> List[Task]:
    query = db.query(Task).filter(Task.user_id == owner_id)

    if status is not None:
        query = query.filter(Task.status == status)

    if search:
        escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        query = query.filter(
            or_(
                Task.title.ilike(pattern, escape="\\"),
                Task.description.ilike(pattern, escape="\\"),
            )
        )

    return query.order_by(Task.created_at.desc()).all()


def get_owned_task(db: Session, task_id: str, owner_id: str) -> Optional[Task]:
    return db.query(Task).filter(Task.id == task_id, Task.user_id == owner_id).first()


def update_task(db: Session, task: Task, changes: dict) -> Task:
    for field, value in changes.items():
        setattr(task, field, value)
    task.updated_at = utcnow()

    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, task: Task) -> None:
    db.delete(task)
    db.commit()
