# PURPOSE: define how users, tasks and subtask links look in the database.

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from .db import Base
from .security.passwords import hash_password


def now_utc():
    """Return timezone-aware UTC datetime (stored in DB)."""
    return datetime.now(UTC)


def new_id() -> str:
    return uuid.uuid4().hex


class UTCDateTime(TypeDecorator):
    """Store naive UTC, hand back aware UTC (SQLite drops tzinfo)."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(UTC).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=UTC)


class UserDB(Base):
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    username: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=now_utc)
    # relationship to tasks
    tasks = relationship("TaskDB", backref="owner")

    def set_password(self, password: str, *, rounds: int) -> None:
        """Replace the stored hash; the plain password is never kept."""
        self.password_hash = hash_password(password, rounds=rounds)


class TaskDB(Base):
    __tablename__ = "tasks"

    id = Column(String(32), primary_key=True, default=new_id)
    task = Column(String, nullable=False)
    desc = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="Todo")  # Todo | In Progress | Done
    priority = Column(String, nullable=False, default="Medium")  # High | Medium | Low
    creator = Column(String(32), ForeignKey("users.id"), nullable=False)
    created_at = Column(UTCDateTime, default=now_utc)
    start = Column(UTCDateTime, nullable=False)
    finish = Column(UTCDateTime, nullable=False)
    color = Column(String, default="#000000")
    finished_at = Column(UTCDateTime, nullable=True)

    subtask_links = relationship(
        "SubtaskLinkDB",
        foreign_keys=lambda: [SubtaskLinkDB.parent_id],
        order_by=lambda: [SubtaskLinkDB.position, SubtaskLinkDB.id],
        cascade="all, delete-orphan",
    )

    @property
    def subtasks(self) -> list[str]:
        """Subtask ids in link order."""
        return [link.subtask_id for link in self.subtask_links]


class SubtaskLinkDB(Base):
    """One entry of a parent's ordered subtask sequence; a task has at most one parent."""

    __tablename__ = "task_subtasks"

    id = Column(Integer, primary_key=True)
    parent_id = Column(String(32), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False)
    subtask_id = Column(
        String(32), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    position = Column(Integer, nullable=False, default=0)


# Helpful indexes for filtering/sorting
Index("ix_tasks_creator", TaskDB.creator)
Index("ix_tasks_status", TaskDB.status)
Index("ix_tasks_priority", TaskDB.priority)
Index("ix_tasks_start", TaskDB.start)
Index("ix_task_subtasks_parent_id", SubtaskLinkDB.parent_id)
