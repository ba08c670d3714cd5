"""Single write path for task mutations from every entry channel."""

from __future__ import annotations

import logging
from typing import List, Optional

from ..models.realtime import RealtimeEvent
from ..models.task import Task
from .broadcast import BroadcastDispatcher
from .errors import StorageError, TaskNotFoundError
from .task_store import TaskStore

logger = logging.getLogger(__name__)


class TaskMutationService:
    """Apply add/toggle/delete to the store, then broadcast the result.

    The HTTP routes and the WebSocket endpoint share one instance and call
    the same methods. They differ only in how the return value or raised
    error is delivered back to whoever issued the mutation.
    """

    def __init__(self, store: TaskStore, dispatcher: BroadcastDispatcher):
        self.store = store
        self.dispatcher = dispatcher

    async def list_tasks(self) -> List[Task]:
        return await self.store.find_all()

    async def add_task(self, text: Optional[str]) -> Task:
        """
        Create a task and announce it.

        Args:
            text: Task content. None is stored as an empty string.

        Returns:
            The stored task including its assigned id.

        Raises:
            StorageError: The store rejected the write. Nothing is broadcast.
        """
        try:
            task = await self.store.create(text or "")
        except StorageError:
            logger.error("Add task failed, nothing broadcast")
            raise

        await self.dispatcher.announce(RealtimeEvent.TASK_ADDED, task, refresh_list=True)
        logger.info(f"Task {task.id} added")
        return task

    async def toggle_task(self, task_id: str) -> Task:
        """
        Flip a task's completion flag and announce the updated record.

        Raises:
            TaskNotFoundError: Unknown id. Surfaced to the caller only.
            StorageError: The store operation failed.
        """
        try:
            task = await self.store.toggle_completed(task_id)
        except TaskNotFoundError:
            logger.warning(f"Toggle requested for unknown task {task_id}")
            raise
        except StorageError:
            logger.error(f"Toggle of task {task_id} failed, nothing broadcast")
            raise

        await self.dispatcher.announce(RealtimeEvent.TASK_UPDATED, task)
        logger.info(f"Task {task.id} toggled to completed={task.completed}")
        return task

    async def delete_task(self, task_id: str) -> str:
        """
        Delete a task (idempotent) and announce the removal.

        Returns:
            The id that was requested, whether or not a record existed.
        """
        try:
            existed = await self.store.delete(task_id)
        except StorageError:
            logger.error(f"Delete of task {task_id} failed, nothing broadcast")
            raise

        await self.dispatcher.announce(RealtimeEvent.TASK_DELETED, task_id, refresh_list=True)
        if existed:
            logger.info(f"Task {task_id} deleted")
        else:
            logger.info(f"Delete requested for absent task {task_id}")
        return task_id


__all__ = ["TaskMutationService"]
