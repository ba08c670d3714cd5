"""HTTP and WebSocket route handlers."""

from . import realtime, tasks

__all__ = ["realtime", "tasks"]
