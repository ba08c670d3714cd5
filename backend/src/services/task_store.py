"""Async accessor for the task collection.

Every public method is a coroutine that runs its blocking SQLite work in a
worker thread, so callers suspend at the I/O boundary like they would with a
network document store.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional, TypeVar

from ..models.task import Task
from .database import DatabaseService
from .errors import StorageError, TaskNotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _row_to_task(row: sqlite3.Row) -> Task:
    return Task(id=row["id"], text=row["text"], completed=bool(row["completed"]))


class TaskStore:
    """CRUD operations on the task collection."""

    def __init__(self, db_service: Optional[DatabaseService] = None):
        self.db = db_service or DatabaseService()

    async def _run(self, operation: str, func: Callable[[sqlite3.Connection], T]) -> T:
        """Run ``func`` with a fresh connection on a worker thread.

        sqlite3 errors are wrapped in StorageError; TaskNotFoundError passes
        through untouched.
        """

        def _work() -> T:
            conn = self.db.connect()
            try:
                with conn:
                    return func(conn)
            finally:
                conn.close()

        try:
            return await asyncio.to_thread(_work)
        except sqlite3.Error as e:
            logger.error(f"Task store {operation} failed: {e}")
            raise StorageError(f"Task store {operation} failed: {e}") from e

    async def create(self, text: str) -> Task:
        """Persist a new task with ``completed = False`` and return it."""
        task = Task(id=uuid.uuid4().hex, text=text, completed=False)

        def _insert(conn: sqlite3.Connection) -> Task:
            conn.execute(
                "INSERT INTO tasks (id, text, completed, created_at) VALUES (?, ?, 0, ?)",
                (task.id, task.text, _utcnow_iso()),
            )
            return task

        return await self._run("create", _insert)

    async def find_all(self) -> List[Task]:
        """Return every stored task in insertion order."""

        def _select(conn: sqlite3.Connection) -> List[Task]:
            cursor = conn.execute(
                "SELECT id, text, completed FROM tasks ORDER BY created_at, rowid"
            )
            return [_row_to_task(row) for row in cursor.fetchall()]

        return await self._run("find_all", _select)

    async def find_by_id(self, task_id: str) -> Optional[Task]:
        """Return the task with ``task_id`` or None."""

        def _select(conn: sqlite3.Connection) -> Optional[Task]:
            row = conn.execute(
                "SELECT id, text, completed FROM tasks WHERE id = ?", (task_id,)
            ).fetchone()
            return _row_to_task(row) if row else None

        return await self._run("find_by_id", _select)

    async def toggle_completed(self, task_id: str) -> Task:
        """Flip ``completed`` on one task and return the stored result.

        Raises:
            TaskNotFoundError: No task with ``task_id`` exists.
            StorageError: The database operation failed.
        """

        def _toggle(conn: sqlite3.Connection) -> Task:
            # Flip in one statement; the write lock is held until commit, so the
            # read-back below sees this call's own result.
            cursor = conn.execute(
                "UPDATE tasks SET completed = 1 - completed WHERE id = ?", (task_id,)
            )
            if cursor.rowcount == 0:
                raise TaskNotFoundError(task_id)
            row = conn.execute(
                "SELECT id, text, completed FROM tasks WHERE id = ?", (task_id,)
            ).fetchone()
            return _row_to_task(row)

        return await self._run("toggle_completed", _toggle)

    async def delete(self, task_id: str) -> bool:
        """Remove a task if present. Returns whether a row was deleted."""

        def _delete(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            return cursor.rowcount > 0

        return await self._run("delete", _delete)


__all__ = ["TaskStore"]
