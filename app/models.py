from datetime import datetime, timezone
from typing import Literal

from pydantic import EmailStr
from sqlalchemy import DateTime
from sqlmodel import Column, Field, SQLModel

TASK_STATUS_PENDING = "pending"
TASK_STATUS_DONE = "done"

TaskStatus = Literal["pending", "done"]


def get_utc_now():
    """Helper function to get current UTC time with timezone"""
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """Database model"""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)
    password_hash: str = Field(max_length=255)
    created_at: datetime = Field(
        default_factory=get_utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class Task(SQLModel, table=True):
    """Database model"""

    __tablename__ = "tasks"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    title: str = Field(max_length=200)
    content: str = Field(default="")
    status: str = Field(default=TASK_STATUS_PENDING, max_length=16)
    created_at: datetime = Field(
        default_factory=get_utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    deleted_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True, index=True)
    )


class TaskCreate(SQLModel):
    """Schema for creating a task"""

    title: str = Field(min_length=1, max_length=200)
    content: str = ""


class TaskUpdate(SQLModel):
    """Schema for updating a task - all fields optional"""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = None
    status: TaskStatus | None = None


class TaskRecord(SQLModel):
    """Task as returned to callers and stored in the list cache.

    Changing these fields changes the cached payload shape; bump
    ``TASKS_KEY_VERSION`` in ``app.cache.keys`` alongside.
    """

    id: int
    user_id: int
    title: str
    content: str
    status: TaskStatus
    created_at: datetime
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class UserCreate(SQLModel):
    email: EmailStr
    password: str = Field(min_length=8)


class UserLogin(SQLModel):
    email: EmailStr
    password: str


class UserRead(SQLModel):
    id: int
    email: str
    created_at: datetime

    model_config = {"from_attributes": True}


class Token(SQLModel):
    access_token: str
    token_type: str = "bearer"
