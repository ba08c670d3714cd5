"""Service layer for the task synchronization core."""

from .broadcast import BroadcastDispatcher, DeliveryFailure, Observer, ObserverRegistry, WebSocketObserver
from .config import AppConfig, get_config, reload_config
from .database import DatabaseService, init_database
from .errors import StorageError, TaskNotFoundError, TaskSyncError
from .task_mutations import TaskMutationService
from .task_store import TaskStore

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "DatabaseService",
    "init_database",
    "TaskStore",
    "TaskMutationService",
    "BroadcastDispatcher",
    "DeliveryFailure",
    "Observer",
    "ObserverRegistry",
    "WebSocketObserver",
    "TaskSyncError",
    "StorageError",
    "TaskNotFoundError",
]
