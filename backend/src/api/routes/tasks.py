"""HTTP API routes for the shared task list."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ...models.task import (
    MessageResponse,
    Task,
    TaskCreate,
    TaskCreatedResponse,
    TASK_DELETED_MESSAGE,
)
from ...services.errors import StorageError
from ...services.task_mutations import TaskMutationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_mutation_service(request: Request) -> TaskMutationService:
    return request.app.state.mutations


def _storage_failure(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"message": message})


@router.get("", response_model=List[Task])
async def list_tasks(service: TaskMutationService = Depends(get_mutation_service)):
    """Return every task."""
    try:
        return await service.list_tasks()
    except StorageError:
        return _storage_failure("Error loading tasks")


@router.post("", response_model=TaskCreatedResponse, status_code=201)
async def add_task(
    data: TaskCreate,
    service: TaskMutationService = Depends(get_mutation_service),
):
    """Add a task and broadcast it to every observer."""
    try:
        task = await service.add_task(data.text)
    except StorageError:
        return _storage_failure("Error adding task")
    return TaskCreatedResponse(task=task)


@router.put("/{task_id}", response_model=Task)
async def toggle_task(
    task_id: str,
    service: TaskMutationService = Depends(get_mutation_service),
):
    """Flip a task's completion flag.

    Unknown ids surface as 404 through the app-level TaskNotFoundError handler.
    """
    try:
        return await service.toggle_task(task_id)
    except StorageError:
        return _storage_failure("Error updating task")


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: str,
    service: TaskMutationService = Depends(get_mutation_service),
):
    """Delete a task. Deleting an absent id still succeeds."""
    try:
        await service.delete_task(task_id)
    except StorageError:
        return _storage_failure("Error deleting task")
    return MessageResponse(message=TASK_DELETED_MESSAGE)


__all__ = ["router", "get_mutation_service"]
