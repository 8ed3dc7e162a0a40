# taskflow/routers/tasks.py
# PURPOSE: /dashboard task CRUD, subtasks and search; every route needs a bearer token.

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..api.deps import parse_limit, parse_page, parse_priority, parse_status
from ..auth import get_current_user
from ..models import (
    Priority,
    Status,
    SubtaskEnvelope,
    SubtaskList,
    TaskCreate,
    TaskEnvelope,
    TaskPageOut,
    TaskSearchOut,
    TaskUpdate,
)
from ..security import TokenIdentity
from ..store_db import (
    get_db,
    create_task as db_create_task,
    create_subtask as db_create_subtask,
    list_subtasks as db_list_subtasks,
    list_tasks as db_list_tasks,
    update_task as db_update_task,
    delete_task as db_delete_task,
    delete_subtask as db_delete_subtask,
    search_tasks as db_search_tasks,
)

router = APIRouter(prefix="/dashboard", tags=["tasks"])


@router.post("/task", response_model=TaskEnvelope)
def create_task(
    item: TaskCreate,
    db: Session = Depends(get_db),
    user: TokenIdentity = Depends(get_current_user),
):
    task = db_create_task(db, item, owner_id=user.id)
    return {"message": "Task created successfully", "task": task}


@router.get("/tasks", response_model=TaskPageOut)
def list_tasks(
    user: TokenIdentity = Depends(get_current_user),
    page: int = Depends(parse_page),
    limit: int = Depends(parse_limit),
    db: Session = Depends(get_db),
):
    result = db_list_tasks(db, owner_id=user.id, page=page, limit=limit)
    return {
        "tasks": result.items,
        "total": result.total,
        "page": result.page,
        "limit": result.limit,
        "total_pages": result.total_pages,
    }


@router.post("/task/{task_id}/subtask", response_model=SubtaskEnvelope)
def create_subtask(
    task_id: str,
    item: TaskCreate,
    db: Session = Depends(get_db),
    user: TokenIdentity = Depends(get_current_user),
):
    subtask, parent = db_create_subtask(db, task_id, item, owner_id=user.id)
    return {"message": "Subtask created successfully", "subtask": subtask, "parent": parent}


@router.get("/task/{task_id}/subtasks", response_model=SubtaskList)
def list_subtasks(
    task_id: str,
    db: Session = Depends(get_db),
    user: TokenIdentity = Depends(get_current_user),
):
    return {"subtasks": db_list_subtasks(db, task_id, owner_id=user.id)}


@router.put("/task/{task_id}", response_model=TaskEnvelope)
def update_task(
    task_id: str,
    item: TaskUpdate,
    db: Session = Depends(get_db),
    user: TokenIdentity = Depends(get_current_user),
):
    task = db_update_task(db, task_id, item, owner_id=user.id)
    return {"message": "Task updated successfully", "task": task}


@router.delete("/task/{task_id}", response_model=TaskEnvelope)
def delete_task(
    task_id: str,
    db: Session = Depends(get_db),
    user: TokenIdentity = Depends(get_current_user),
):
    task = db_delete_task(db, task_id, owner_id=user.id)
    return {"message": "Task deleted successfully", "task": task}


@router.delete("/task/{parent_id}/subtask/{subtask_id}", response_model=SubtaskEnvelope)
def delete_subtask(
    parent_id: str,
    subtask_id: str,
    db: Session = Depends(get_db),
    user: TokenIdentity = Depends(get_current_user),
):
    subtask = db_delete_subtask(db, parent_id, subtask_id, owner_id=user.id)
    return {"message": "Subtask deleted successfully", "subtask": subtask}


@router.get("/search", response_model=TaskSearchOut)
def search_tasks(
    user: TokenIdentity = Depends(get_current_user),
    status: Optional[Status] = Depends(parse_status),
    priority: Optional[Priority] = Depends(parse_priority),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    keyword: Optional[str] = None,
    db: Session = Depends(get_db),
):
    tasks = db_search_tasks(
        db,
        owner_id=user.id,
        status=status,
        priority=priority,
        start_date=start_date,
        end_date=end_date,
        keyword=keyword,
    )
    return {"tasks": tasks}
