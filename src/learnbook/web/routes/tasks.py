"""Daily task (to-do) endpoints."""

from dataclasses import asdict
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from learnbook.db import tasks_repository as tasks
from learnbook.web.deps import get_user_id
from learnbook.web.schemas import TaskCreate, TaskToggle, envelope

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("")
def list_tasks(
    task_date: str | None = Query(default=None, alias="date"),
    user_id: str = Depends(get_user_id),
) -> dict[str, Any]:
    """Tasks for a day (today by default)."""
    day = task_date or date.today().isoformat()
    return envelope([asdict(t) for t in tasks.list_tasks(user_id, day)])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_task(body: TaskCreate, user_id: str = Depends(get_user_id)) -> dict[str, Any]:
    task = tasks.add_task(user_id, **body.model_dump())
    return envelope(asdict(task))


@router.patch("/{task_id}")
def toggle_task(
    task_id: str,
    body: TaskToggle,
    user_id: str = Depends(get_user_id),
) -> dict[str, Any]:
    if not tasks.toggle_task(user_id, task_id, body.completed):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task '{task_id}' not found",
        )
    return envelope({"id": task_id, "completed": body.completed})


@router.delete("/{task_id}")
def delete_task(task_id: str, user_id: str = Depends(get_user_id)) -> dict[str, Any]:
    if not tasks.delete_task(user_id, task_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task '{task_id}' not found",
        )
    return envelope({"id": task_id})
