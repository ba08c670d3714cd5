"""Task-related Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

TASK_ADDED_MESSAGE = "Task added successfully"
TASK_DELETED_MESSAGE = "Task deleted"
TASK_NOT_FOUND_MESSAGE = "Task not found"


class Task(BaseModel):
    """A single record in the shared task list."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "3f9c2a7e5b1d4e0f8a6c9b2d1e4f7a0c",
                "text": "buy milk",
                "completed": False,
            }
        },
    )

    id: str = Field(..., description="Opaque identifier assigned by the store")
    text: str = Field(..., description="Free-form task content, immutable after creation")
    completed: bool = Field(default=False, description="Completion flag, flipped by toggle")


class TaskCreate(BaseModel):
    """Request payload to add a task. Missing text is stored as an empty string."""

    text: str = Field(default="", description="Task content")


class TaskCreatedResponse(BaseModel):
    """Response body for a successful add."""

    message: str = TASK_ADDED_MESSAGE
    task: Task


class MessageResponse(BaseModel):
    """Plain confirmation or error body."""

    message: str


__all__ = [
    "Task",
    "TaskCreate",
    "TaskCreatedResponse",
    "MessageResponse",
    "TASK_ADDED_MESSAGE",
    "TASK_DELETED_MESSAGE",
    "TASK_NOT_FOUND_MESSAGE",
]
