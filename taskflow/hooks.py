"""Post-commit task events.

The task store fires ``done`` after a task has been committed in the ``Done``
status. Handlers run best-effort: a failing handler is logged and never
reaches the request that triggered it.
"""

from __future__ import annotations

import logging
from typing import Callable, List

from sqlalchemy.orm import Session

from .db_models import TaskDB

logger = logging.getLogger(__name__)

TaskHandler = Callable[[Session, TaskDB], None]


class TaskHooks:
    def __init__(self) -> None:
        self._on_done: List[TaskHandler] = []

    def on_done(self, handler: TaskHandler) -> TaskHandler:
        """Register a handler (usable as a decorator); registering twice is a no-op."""
        if handler not in self._on_done:
            self._on_done.append(handler)
        return handler

    def fire_done(self, db: Session, task: TaskDB) -> None:
        task_id = task.id
        for handler in list(self._on_done):
            try:
                handler(db, task)
            except Exception:
                db.rollback()
                logger.exception(
                    "task done hook failed handler=%s task_id=%s",
                    getattr(handler, "__name__", handler),
                    task_id,
                )


# Registry used by the application; wired in taskflow.main
task_hooks = TaskHooks()
