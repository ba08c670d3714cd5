"""Error taxonomy for the task synchronization core."""

from __future__ import annotations


class TaskSyncError(Exception):
    """Base class for task store and mutation failures."""


class StorageError(TaskSyncError):
    """The persistence layer itself failed (connectivity, timeout, disk)."""


class TaskNotFoundError(TaskSyncError):
    """An operation referenced a task id that is absent from the store."""

    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


__all__ = ["TaskSyncError", "StorageError", "TaskNotFoundError"]
