"""Wire models for the real-time task channel."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class RealtimeEvent:
    """Event name constants carried in the ``event`` field of every frame."""

    # Inbound (client -> server)
    ADD_TASK = "addTask"
    DELETE_TASK = "deleteTask"
    TASK_COMPLETE = "taskComplete"

    # Outbound (server -> client)
    TASK_LIST = "taskList"
    TASK_ADDED = "taskAdded"
    TASK_UPDATED = "taskUpdated"
    TASK_DELETED = "taskDeleted"
    TASK_ERROR = "taskError"

    INBOUND = frozenset({ADD_TASK, DELETE_TASK, TASK_COMPLETE})
    OUTBOUND = frozenset({TASK_LIST, TASK_ADDED, TASK_UPDATED, TASK_DELETED, TASK_ERROR})


class RealtimeMessage(BaseModel):
    """Envelope for one frame on the real-time channel."""

    event: str = Field(..., min_length=1, description="Event name, see RealtimeEvent")
    data: Any = Field(default=None, description="Event payload")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


__all__ = ["RealtimeEvent", "RealtimeMessage"]
