# PURPOSE: request/response schemas for the auth and dashboard APIs.

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

Status = Literal["Todo", "In Progress", "Done"]
Priority = Literal["High", "Medium", "Low"]

STATUSES: tuple[str, ...] = ("Todo", "In Progress", "Done")
PRIORITIES: tuple[str, ...] = ("High", "Medium", "Low")
DONE = "Done"


def as_utc(value: datetime | None) -> datetime | None:
    """Interpret naive datetimes as UTC; convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class TaskCreate(BaseModel):
    task: str = Field(min_length=1, max_length=200)
    desc: str | None = None
    start: datetime
    finish: datetime
    color: str = "#000000"
    status: Status
    priority: Priority = "Medium"
    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "examples": [
                {
                    "task": "Write report",
                    "start": "2025-01-06T09:00:00Z",
                    "finish": "2025-01-07T18:00:00Z",
                    "status": "Todo",
                    "priority": "High",
                },
            ]
        },
    )

    @field_validator("start", "finish")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def _finish_after_start(self):
        if self.finish <= self.start:
            raise ValueError("finish must be later than start")
        return self


class TaskUpdate(BaseModel):
    task: str | None = Field(default=None, min_length=1, max_length=200)
    desc: str | None = None
    start: datetime | None = None
    finish: datetime | None = None
    color: str | None = None
    status: Status | None = None
    priority: Priority | None = None
    finished_at: datetime | None = None
    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "examples": [
                {"status": "In Progress"},
                {"priority": "Low"},
                {"task": "New name"},
            ]
        },
    )

    @field_validator("start", "finish", "finished_at")
    @classmethod
    def _to_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    @model_validator(mode="after")
    def _finish_after_start(self):
        if self.start is not None and self.finish is not None and self.finish <= self.start:
            raise ValueError("finish must be later than start")
        return self


class Task(BaseModel):
    id: str
    task: str
    desc: str | None
    status: Status
    priority: Priority
    creator: str
    created_at: datetime
    start: datetime
    finish: datetime
    color: str | None
    finished_at: datetime | None
    subtasks: list[str]

    model_config = ConfigDict(from_attributes=True)  # ORM -> schema


class TaskEnvelope(BaseModel):
    message: str
    task: Task


class SubtaskEnvelope(BaseModel):
    message: str
    subtask: Task
    parent: Task | None = None


class SubtaskList(BaseModel):
    subtasks: list[Task]


class TaskPageOut(BaseModel):
    tasks: list[Task]
    total: int
    page: int
    limit: int
    total_pages: int = Field(serialization_alias="totalPages")


class TaskSearchOut(BaseModel):
    tasks: list[Task]


# --- User / Auth schemas ---


class SignupRequest(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    email: EmailStr
    password: str = Field(min_length=1, max_length=72)

    @field_validator("password")
    @classmethod
    def _fits_bcrypt(cls, value: str) -> str:
        # bcrypt refuses input over 72 bytes, not characters
        if len(value.encode("utf-8")) > 72:
            raise ValueError("password must be at most 72 bytes in UTF-8")
        return value


class SigninRequest(BaseModel):
    # Optional here so a missing field is reported as a plain 400, not a schema error
    email: str | None = None
    password: str | None = None


class UserPublic(BaseModel):
    id: str
    username: str
    email: EmailStr
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)  # allow ORM -> schema


class TokenResponse(BaseModel):
    token: str
    token_type: Literal["bearer"] = "bearer"
    username: str
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [{"token": "<jwt>", "token_type": "bearer", "username": "alice"}]
        }
    )
