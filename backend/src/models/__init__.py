"""Pydantic models for data validation and serialization."""

from .realtime import RealtimeEvent, RealtimeMessage
from .task import MessageResponse, Task, TaskCreate, TaskCreatedResponse

__all__ = [
    "Task",
    "TaskCreate",
    "TaskCreatedResponse",
    "MessageResponse",
    "RealtimeEvent",
    "RealtimeMessage",
]
