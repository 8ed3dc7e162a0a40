"""Derived parent status: a parent becomes Done once all its subtasks are Done."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .db_models import SubtaskLinkDB, TaskDB, now_utc
from .models import DONE

logger = logging.getLogger(__name__)


def _complete_parent_of(db: Session, task_id: str) -> Optional[str]:
    """Mark the parent of `task_id` Done if no sibling is unfinished.

    Returns the parent id when it was changed, else None. Runs as one
    transaction: the sibling count and the parent write commit together.
    """
    link = (
        db.query(SubtaskLinkDB)
        .filter(SubtaskLinkDB.subtask_id == task_id)
        .one_or_none()
    )
    if link is None:
        db.rollback()
        return None

    # Row lock on the parent where the backend supports it (no-op on SQLite)
    parent = (
        db.query(TaskDB)
        .filter(TaskDB.id == link.parent_id)
        .with_for_update()
        .one_or_none()
    )
    if parent is None or parent.status == DONE:
        db.rollback()
        return None

    unfinished = (
        db.query(func.count(TaskDB.id))
        .join(SubtaskLinkDB, SubtaskLinkDB.subtask_id == TaskDB.id)
        .filter(SubtaskLinkDB.parent_id == parent.id, TaskDB.status != DONE)
        .scalar()
    )
    if unfinished:
        db.rollback()
        return None

    parent_id = parent.id
    parent.status = DONE
    if parent.finished_at is None:
        parent.finished_at = now_utc()
    db.commit()
    logger.info("parent completed parent_id=%s via subtask_id=%s", parent_id, task_id)
    return parent_id


def propagate_parent_done(db: Session, task: TaskDB) -> None:
    """Hook for `TaskHooks.on_done`; walks up while parents keep completing."""
    origin_id = task.id
    current: Optional[str] = origin_id
    try:
        while current is not None:
            current = _complete_parent_of(db, current)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("parent status propagation failed task_id=%s", origin_id)
