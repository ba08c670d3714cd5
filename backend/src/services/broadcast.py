"""Fan-out of task state to connected real-time observers."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional, Protocol, runtime_checkable

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

from ..models.realtime import RealtimeEvent, RealtimeMessage
from .errors import StorageError
from .task_store import TaskStore

logger = logging.getLogger(__name__)


@runtime_checkable
class Observer(Protocol):
    """A connected client that can receive pushed frames."""

    observer_id: str

    async def send(self, message: dict[str, Any]) -> None:
        """Deliver one frame to exactly this observer."""
        ...


class WebSocketObserver:
    """Observer handle backed by a FastAPI WebSocket."""

    def __init__(self, websocket: WebSocket, observer_id: Optional[str] = None):
        self.websocket = websocket
        self.observer_id = observer_id or uuid.uuid4().hex

    async def send(self, message: dict[str, Any]) -> None:
        await self.websocket.send_json(message)

    def __repr__(self) -> str:
        return f"WebSocketObserver({self.observer_id})"


@dataclass
class DeliveryFailure:
    """One observer that did not receive one frame."""

    observer_id: str
    event: str
    error: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ObserverRegistry:
    """The set of currently connected observers, keyed by observer_id."""

    def __init__(self) -> None:
        self._observers: dict[str, Observer] = {}

    def add(self, observer: Observer) -> None:
        self._observers[observer.observer_id] = observer

    def remove(self, observer: Observer) -> bool:
        """Remove an observer. Returns False if it was not registered."""
        return self._observers.pop(observer.observer_id, None) is not None

    def snapshot(self) -> List[Observer]:
        """Copy of the current observers, safe to iterate across awaits."""
        return list(self._observers.values())

    def __len__(self) -> int:
        return len(self._observers)

    def __contains__(self, observer: object) -> bool:
        observer_id = getattr(observer, "observer_id", None)
        return observer_id is not None and observer_id in self._observers


class BroadcastDispatcher:
    """Keeps every observer's view of the task list current.

    Announcements and connection handshakes share one asyncio.Lock. The
    mutation service calls ``announce`` right after its store write
    resolves, so frames leave in store-completion order and a new observer
    always gets ``taskList`` before any other frame.
    """

    def __init__(self, store: TaskStore, send_timeout: float = 5.0):
        """Initialize the dispatcher.

        Args:
            store: Accessor used to read the full list for refreshes.
            send_timeout: Seconds allowed for one delivery to one observer.
        """
        self._store = store
        self._registry = ObserverRegistry()
        self._lock = asyncio.Lock()
        self.send_timeout = send_timeout

    @property
    def observer_count(self) -> int:
        return len(self._registry)

    def is_connected(self, observer: Observer) -> bool:
        return observer in self._registry

    async def connect(self, observer: Observer) -> None:
        """Register ``observer`` and send it the full current list.

        Raises:
            StorageError: The list could not be read. The observer is
                deregistered before the error propagates.
        """
        async with self._lock:
            self._registry.add(observer)
            try:
                tasks = await self._store.find_all()
            except StorageError:
                self._registry.remove(observer)
                raise
            message = self._encode(RealtimeEvent.TASK_LIST, tasks)
            failure = await self._deliver(observer, RealtimeEvent.TASK_LIST, message)
        if failure is None:
            logger.info(
                f"Observer {observer.observer_id} connected with {len(tasks)} tasks "
                f"({self.observer_count} connected)"
            )

    def disconnect(self, observer: Observer) -> None:
        """Deregister ``observer``. Safe to call more than once."""
        if self._registry.remove(observer):
            logger.info(
                f"Observer {observer.observer_id} disconnected "
                f"({self.observer_count} connected)"
            )

    async def announce(
        self, event: str, data: Any, *, refresh_list: bool = False
    ) -> List[DeliveryFailure]:
        """Send ``event`` to every observer, optionally followed by a full list.

        Returns:
            Delivery failures collected across the fan-out (never raised).
        """
        async with self._lock:
            failures = await self._fan_out(event, data)
            if refresh_list:
                failures.extend(await self._fan_out_task_list())
        return failures

    async def announce_task_list(self) -> List[DeliveryFailure]:
        """Send the full current list to every observer."""
        async with self._lock:
            return await self._fan_out_task_list()

    async def _fan_out_task_list(self) -> List[DeliveryFailure]:
        try:
            tasks = await self._store.find_all()
        except StorageError as e:
            # The mutation itself already landed; observers catch up on the next refresh.
            logger.error(f"Skipping task list refresh, store read failed: {e}")
            return []
        return await self._fan_out(RealtimeEvent.TASK_LIST, tasks)

    async def _fan_out(self, event: str, data: Any) -> List[DeliveryFailure]:
        observers = self._registry.snapshot()
        if not observers:
            logger.debug(f"No observers connected, dropping {event}")
            return []

        message = self._encode(event, data)
        results = await asyncio.gather(
            *(self._deliver(observer, event, message) for observer in observers)
        )
        failures = [r for r in results if r is not None]

        logger.debug(
            f"Dispatched {event} to {len(observers) - len(failures)}/{len(observers)} observers"
        )
        return failures

    async def _deliver(
        self, observer: Observer, event: str, message: dict[str, Any]
    ) -> Optional[DeliveryFailure]:
        try:
            await asyncio.wait_for(observer.send(message), timeout=self.send_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Delivery of {event} to observer {observer.observer_id} timed out "
                f"after {self.send_timeout}s"
            )
            return DeliveryFailure(observer.observer_id, event, "timeout")
        except Exception as e:
            logger.warning(f"Delivery of {event} to observer {observer.observer_id} failed: {e}")
            return DeliveryFailure(observer.observer_id, event, str(e) or type(e).__name__)
        return None

    @staticmethod
    def _encode(event: str, data: Any) -> dict[str, Any]:
        return RealtimeMessage(event=event, data=jsonable_encoder(data)).to_wire()


__all__ = [
    "Observer",
    "WebSocketObserver",
    "DeliveryFailure",
    "ObserverRegistry",
    "BroadcastDispatcher",
]
