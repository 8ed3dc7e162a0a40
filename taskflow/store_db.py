# PURPOSE: task persistence scoped by owner: CRUD, subtasks, pagination, search.
# Every function takes the owner id; a task outside that scope is NotFound.

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import case
from sqlalchemy.orm import Session

from . import errors
from .db_models import SubtaskLinkDB, TaskDB, now_utc
from .hooks import TaskHooks, task_hooks
from .models import DONE, as_utc

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("task", "desc", "start", "finish", "color", "status", "priority", "finished_at")


# --- Session dependency ----------------------------------------------------


def get_db():
    """Yield a SQLAlchemy session (used as a FastAPI dependency)."""
    from .db import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# --- Helpers ---------------------------------------------------------------


@dataclass
class TaskPage:
    items: List[TaskDB]
    total: int
    page: int
    limit: int
    total_pages: int


def _escape_like(value: str) -> str:
    """Escape LIKE wildcards so the keyword matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _apply_search_filters(
    query,
    *,
    owner_id: str,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    keyword: Optional[str] = None,
):
    """Apply the owner scope plus optional conjunctive filters to a TaskDB query."""
    query = query.filter(TaskDB.creator == owner_id)
    if status:
        query = query.filter(TaskDB.status == status)
    if priority:
        query = query.filter(TaskDB.priority == priority)
    if start_date is not None:
        query = query.filter(TaskDB.start >= as_utc(start_date))
    if end_date is not None:
        query = query.filter(TaskDB.finish <= as_utc(end_date))
    if keyword:
        like = f"%{_escape_like(keyword)}%"
        query = query.filter(TaskDB.task.ilike(like, escape="\\"))
    return query


def _apply_ordering(query):
    """Priority rank High > Medium > Low, then newest first; id keeps it stable."""
    rank = case(
        (TaskDB.priority == "High", 3),
        (TaskDB.priority == "Medium", 2),
        (TaskDB.priority == "Low", 1),
        else_=0,
    )
    return query.order_by(rank.desc(), TaskDB.created_at.desc(), TaskDB.id.desc())


def _check_dates(start: Optional[datetime], finish: Optional[datetime]) -> None:
    if start is not None and finish is not None and as_utc(finish) <= as_utc(start):
        raise errors.ValidationError("Finish date must be later than start date")


def _sync_finished_at(row: TaskDB, *, explicit: bool = False) -> None:
    """finished_at follows status unless the caller supplied it."""
    if row.status == DONE:
        if row.finished_at is None:
            row.finished_at = now_utc()
    elif not explicit:
        row.finished_at = None


def _new_row(data, owner_id: str) -> TaskDB:
    values: dict[str, Any] = data.model_dump()
    _check_dates(values.get("start"), values.get("finish"))
    row = TaskDB(
        task=values["task"],
        desc=values.get("desc"),
        status=values.get("status") or "Todo",
        priority=values.get("priority") or "Medium",
        start=values["start"],
        finish=values["finish"],
        color=values.get("color") or "#000000",
        creator=owner_id,
        created_at=now_utc(),
    )
    _sync_finished_at(row)
    return row


# --- CRUD: Tasks -----------------------------------------------------------


def get_task(db: Session, task_id: str, *, owner_id: str) -> Optional[TaskDB]:
    """Fetch a single task owned by owner_id, or None."""
    return (
        db.query(TaskDB)
        .filter(TaskDB.id == task_id, TaskDB.creator == owner_id)
        .one_or_none()
    )


def _get_owned(db: Session, task_id: str, *, owner_id: str) -> TaskDB:
    row = get_task(db, task_id, owner_id=owner_id)
    if row is None:
        raise errors.NotFound("Task not found or unauthorized")
    return row


def create_task(db: Session, data, *, owner_id: str) -> TaskDB:
    """Validate dates and persist a new task owned by owner_id."""
    row = _new_row(data, owner_id)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("task created task_id=%s owner_id=%s", row.id, owner_id)
    return row


def create_subtask(
    db: Session,
    parent_id: str,
    data,
    *,
    owner_id: str,
    hooks: TaskHooks = task_hooks,
) -> tuple[TaskDB, TaskDB]:
    """Create a task and append it to the parent's subtask sequence.

    Both writes share one commit. Returns (subtask, parent).
    """
    parent = get_task(db, parent_id, owner_id=owner_id)
    if parent is None:
        raise errors.NotFound("Parent task not found")

    row = _new_row(data, owner_id)
    db.add(row)
    db.flush()  # assigns row.id
    position = max((link.position for link in parent.subtask_links), default=-1) + 1
    parent.subtask_links.append(SubtaskLinkDB(subtask_id=row.id, position=position))
    db.commit()
    db.refresh(row)
    db.refresh(parent)
    logger.info("subtask created task_id=%s parent_id=%s owner_id=%s", row.id, parent_id, owner_id)

    if row.status == DONE:
        hooks.fire_done(db, row)
    return row, parent


def list_subtasks(db: Session, parent_id: str, *, owner_id: str) -> List[TaskDB]:
    """Return the parent's subtasks in sequence order."""
    _get_owned(db, parent_id, owner_id=owner_id)
    return (
        db.query(TaskDB)
        .join(SubtaskLinkDB, SubtaskLinkDB.subtask_id == TaskDB.id)
        .filter(SubtaskLinkDB.parent_id == parent_id, TaskDB.creator == owner_id)
        .order_by(SubtaskLinkDB.position.asc(), SubtaskLinkDB.id.asc())
        .all()
    )


def list_tasks(db: Session, *, owner_id: str, page: int = 1, limit: int = 10) -> TaskPage:
    """Return one page of the owner's tasks plus the total count."""
    page = max(1, page)
    limit = max(1, limit)
    base = db.query(TaskDB).filter(TaskDB.creator == owner_id)
    total = base.count()
    items = _apply_ordering(base).offset((page - 1) * limit).limit(limit).all()
    logger.info("tasks listed owner_id=%s page=%s returned=%s total=%s", owner_id, page, len(items), total)
    return TaskPage(
        items=items,
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit),
    )


def update_task(
    db: Session,
    task_id: str,
    data,
    *,
    owner_id: str,
    hooks: TaskHooks = task_hooks,
) -> TaskDB:
    """Merge the provided fields into the task; fire the done hook on transition."""
    row = _get_owned(db, task_id, owner_id=owner_id)
    was_done = row.status == DONE

    changes = {
        field: getattr(data, field)
        for field in UPDATABLE_FIELDS
        if getattr(data, field, None) is not None
    }
    _check_dates(changes.get("start", row.start), changes.get("finish", row.finish))

    for field, value in changes.items():
        setattr(row, field, value)
    _sync_finished_at(row, explicit="finished_at" in changes)
    db.commit()
    db.refresh(row)
    logger.info("task updated task_id=%s owner_id=%s fields=%s", task_id, owner_id, sorted(changes))

    if row.status == DONE and not was_done:
        hooks.fire_done(db, row)
    return row


def delete_task(db: Session, task_id: str, *, owner_id: str) -> TaskDB:
    """Delete a task and every subtask link it takes part in; returns the deleted row."""
    row = _get_owned(db, task_id, owner_id=owner_id)
    snapshot = _detach(row)
    db.query(SubtaskLinkDB).filter(SubtaskLinkDB.subtask_id == task_id).delete(
        synchronize_session=False
    )
    db.delete(row)
    db.commit()
    logger.info("task deleted task_id=%s owner_id=%s", task_id, owner_id)
    return snapshot


def delete_subtask(db: Session, parent_id: str, subtask_id: str, *, owner_id: str) -> TaskDB:
    """Unlink a subtask from its parent and delete it, in one commit."""
    parent = get_task(db, parent_id, owner_id=owner_id)
    if parent is None:
        raise errors.NotFound("Parent task not found")
    link = next((ln for ln in parent.subtask_links if ln.subtask_id == subtask_id), None)
    if link is None:
        raise errors.NotFound("Subtask not linked to this task")
    row = get_task(db, subtask_id, owner_id=owner_id)
    if row is None:
        raise errors.NotFound("Subtask not found")

    snapshot = _detach(row)
    parent.subtask_links.remove(link)
    db.flush()  # link row goes before the task it points at
    db.delete(row)
    db.commit()
    logger.info(
        "subtask deleted task_id=%s parent_id=%s owner_id=%s", subtask_id, parent_id, owner_id
    )
    return snapshot


def search_tasks(
    db: Session,
    *,
    owner_id: str,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    keyword: Optional[str] = None,
) -> List[TaskDB]:
    """Return the owner's tasks matching every given filter."""
    query = _apply_search_filters(
        db.query(TaskDB),
        owner_id=owner_id,
        status=status,
        priority=priority,
        start_date=start_date,
        end_date=end_date,
        keyword=keyword,
    )
    items = _apply_ordering(query).all()
    logger.info("tasks searched owner_id=%s found=%s", owner_id, len(items))
    return items


def _detach(row: TaskDB) -> TaskDB:
    """Copy of a row that stays readable after the original is deleted."""
    copy = TaskDB(
        id=row.id,
        task=row.task,
        desc=row.desc,
        status=row.status,
        priority=row.priority,
        creator=row.creator,
        created_at=row.created_at,
        start=row.start,
        finish=row.finish,
        color=row.color,
        finished_at=row.finished_at,
    )
    copy.subtask_links = [
        SubtaskLinkDB(subtask_id=link.subtask_id, position=link.position)
        for link in row.subtask_links
    ]
    return copy
