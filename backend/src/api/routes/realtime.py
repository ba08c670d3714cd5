"""WebSocket route for real-time task synchronization."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from ...models.realtime import RealtimeEvent, RealtimeMessage
from ...models.task import TASK_NOT_FOUND_MESSAGE
from ...services.broadcast import WebSocketObserver
from ...services.errors import StorageError, TaskNotFoundError
from ...services.task_mutations import TaskMutationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


class InvalidFrameError(ValueError):
    """An inbound frame could not be mapped to a mutation."""


def _extract_text(data: Any) -> str:
    if data is None:
        return ""
    if isinstance(data, str):
        return data
    if isinstance(data, dict):
        text = data.get("text")
        if text is None or isinstance(text, str):
            return text or ""
    raise InvalidFrameError("addTask expects {text} or a string")


def _extract_id(event: str, data: Any) -> str:
    if isinstance(data, dict):
        data = data.get("id")
    if isinstance(data, str) and data:
        return data
    raise InvalidFrameError(f"{event} expects a task id")


async def _send_error(websocket: WebSocket, message: str, event: Optional[str]) -> None:
    frame = RealtimeMessage(
        event=RealtimeEvent.TASK_ERROR,
        data={"message": message, "event": event},
    )
    await websocket.send_json(frame.to_wire())


async def _dispatch(service: TaskMutationService, frame: RealtimeMessage) -> None:
    """Route one inbound frame to the mutation service.

    The sender sees the outcome through the broadcast it is registered for,
    so nothing is returned here on success.
    """
    if frame.event == RealtimeEvent.ADD_TASK:
        await service.add_task(_extract_text(frame.data))
    elif frame.event == RealtimeEvent.DELETE_TASK:
        await service.delete_task(_extract_id(frame.event, frame.data))
    elif frame.event == RealtimeEvent.TASK_COMPLETE:
        await service.toggle_task(_extract_id(frame.event, frame.data))
    else:
        raise InvalidFrameError(f"Unknown event: {frame.event}")


@router.websocket("/ws/tasks")
async def tasks_websocket(websocket: WebSocket):
    """Persistent channel: full list on connect, then mutations both ways."""
    service: TaskMutationService = websocket.app.state.mutations
    dispatcher = service.dispatcher

    await websocket.accept()
    observer = WebSocketObserver(websocket)

    try:
        await dispatcher.connect(observer)
    except StorageError:
        logger.error(f"Closing observer {observer.observer_id}: initial task list unavailable")
        await websocket.close(code=1011)
        return

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            event: Optional[str] = None
            if raw is None:
                await _send_error(websocket, "Malformed message: expected a text frame", event)
                continue
            try:
                frame = RealtimeMessage.model_validate_json(raw)
                event = frame.event
                await _dispatch(service, frame)
            except ValidationError:
                await _send_error(websocket, "Malformed message", event)
            except InvalidFrameError as e:
                await _send_error(websocket, str(e), event)
            except TaskNotFoundError:
                await _send_error(websocket, TASK_NOT_FOUND_MESSAGE, event)
            except StorageError:
                await _send_error(websocket, "Storage failure, try again", event)
    except WebSocketDisconnect:
        pass
    finally:
        dispatcher.disconnect(observer)


__all__ = ["router"]
