from datetime import datetime, timezone
from typing import Any, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from models import TaskPriority, TaskStatus

TITLE_MAX = 200
DESCRIPTION_MAX = 1000
PASSWORD_MIN = 6
PASSWORD_MAX = 100

PRIORITY_VALUES = [p.value for p in TaskPriority]
STATUS_VALUES = [s.value for s in TaskStatus]


def ok(data: Any) -> dict:
    return {"success": True, "data": data}


def _normalize_email(value):
    if not isinstance(value, str):
        return value
    value = value.strip().lower()
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise ValueError("Invalid email format")
    return value


def _check_title(value, empty_message):
    if value is None:
        raise ValueError(empty_message)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError(empty_message)
        if len(value) > TITLE_MAX:
            raise ValueError(f"Title must be at most {TITLE_MAX} characters")
    return value


def _check_description(value):
    if isinstance(value, str):
        value = value.strip()
        if len(value) > DESCRIPTION_MAX:
            raise ValueError(f"Description must be at most {DESCRIPTION_MAX} characters")
    return value


def _check_choice(value, allowed, label):
    if value not in allowed:
        raise ValueError(f"{label} must be one of: {', '.join(allowed)}")
    return value


def _to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# -------------------------------
# Auth
# -------------------------------

class SignupRequest(BaseModel):
    email: str
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        if len(v) < PASSWORD_MIN:
            raise ValueError(f"Password must be at least {PASSWORD_MIN} characters")
        if len(v) > PASSWORD_MAX:
            raise ValueError(f"Password must be at most {PASSWORD_MAX} characters")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class UserOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    email: str
    created_at: datetime

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        return value.replace(tzinfo=timezone.utc).isoformat()


# -------------------------------
# Tasks
# -------------------------------

class TaskCreate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    due_date: Optional[datetime] = None

    @field_validator("title", mode="before")
    @classmethod
    def check_title(cls, v):
        return _check_title(v, "Title is required")

    @field_validator("description", mode="before")
    @classmethod
    def check_description(cls, v):
        return _check_description(v)

    @field_validator("priority", mode="before")
    @classmethod
    def check_priority(cls, v):
        return _check_choice(v, PRIORITY_VALUES, "Priority")

    @field_validator("status", mode="before")
    @classmethod
    def check_status(cls, v):
        return _check_choice(v, STATUS_VALUES, "Status")

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v):
        return _to_utc_naive(v)


class TaskUpdate(BaseModel):
    """Partial update; only fields present in the body are applied."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[datetime] = None

    @field_validator("title", mode="before")
    @classmethod
    def check_title(cls, v):
        return _check_title(v, "Title cannot be empty")

    @field_validator("description", mode="before")
    @classmethod
    def check_description(cls, v):
        return _check_description(v)

    @field_validator("priority", mode="before")
    @classmethod
    def check_priority(cls, v):
        return _check_choice(v, PRIORITY_VALUES, "Priority")

    @field_validator("status", mode="before")
    @classmethod
    def check_status(cls, v):
        return _check_choice(v, STATUS_VALUES, "Status")

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v):
        return _to_utc_naive(v)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class TaskOut(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: str
    title: str
    description: Optional[str] = None
    user_id: str
    priority: TaskPriority
    status: TaskStatus
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_serializer("due_date", "created_at", "updated_at")
    def serialize_timestamp(self, value: Optional[datetime]) -> Optional[str]:
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc).isoformat()


def task_json(task) -> dict:
    return TaskOut.model_validate(task).model_dump(by_alias=True, mode="json")


def user_json(user) -> dict:
    return UserOut(user_id=user.id, email=user.email, created_at=user.created_at).model_dump(
        by_alias=True, mode="json"
    )
