"""FastAPI application main entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .routes import realtime, tasks
from ..models.task import TASK_NOT_FOUND_MESSAGE
from ..services.broadcast import BroadcastDispatcher
from ..services.config import get_config
from ..services.database import DatabaseService
from ..services.errors import StorageError, TaskNotFoundError
from ..services.task_mutations import TaskMutationService
from ..services.task_store import TaskStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Initialize the task database and wire the sync core onto app.state."""
    config = get_config()
    db = DatabaseService(config.tasks_db_path, timeout=config.store_timeout_seconds)
    db.initialize()

    store = TaskStore(db)
    dispatcher = BroadcastDispatcher(store, send_timeout=config.broadcast_send_timeout_seconds)
    application.state.store = store
    application.state.dispatcher = dispatcher
    application.state.mutations = TaskMutationService(store, dispatcher)
    logger.info("Task sync core ready")

    yield

    logger.info(f"Shutting down with {dispatcher.observer_count} observers connected")


# Error handlers
async def task_not_found_handler(request: Request, exc: TaskNotFoundError):
    """Unknown task id referenced by an HTTP request."""
    return JSONResponse(status_code=404, content={"message": TASK_NOT_FOUND_MESSAGE})


async def storage_error_handler(request: Request, exc: StorageError):
    """Store failure not already mapped by the route."""
    logger.error(f"Unhandled storage failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"message": "Storage failure"})


async def health(request: Request):
    """Liveness probe with the current observer count."""
    dispatcher: BroadcastDispatcher = request.app.state.dispatcher
    return {"status": "healthy", "observers": dispatcher.observer_count}


def create_app() -> FastAPI:
    """Build the application from the current config.

    CORS origins are fixed when the app is built. Call ``reload_config()``
    before ``create_app()`` to pick up changed environment variables; the
    module-level ``app`` reads them once at import.
    """
    config = get_config()

    application = FastAPI(
        title="Task Sync API",
        description="Shared task list kept consistent across HTTP and WebSocket clients",
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS middleware
    application.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(TaskNotFoundError, task_not_found_handler)
    application.add_exception_handler(StorageError, storage_error_handler)

    application.include_router(tasks.router)
    application.include_router(realtime.router)
    application.add_api_route("/health", health, methods=["GET"])
    return application


app = create_app()


def run_server(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """
    Run the API server.

    Args:
        host: Interface to bind to (default: HOST from config)
        port: Port to listen on (default: PORT from config)
    """
    import uvicorn

    config = get_config()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    bind_host = host or config.host
    bind_port = port or config.port
    logger.info(f"Starting task sync server on http://{bind_host}:{bind_port}")

    uvicorn.run(
        create_app(),
        host=bind_host,
        port=bind_port,
        log_level=config.log_level.lower(),
        access_log=True,
    )


def cli() -> None:
    """Console script entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Task Sync Server")
    parser.add_argument("--host", default=None, help="Host to bind to (default: HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on (default: PORT or 5000)")
    args = parser.parse_args()
    run_server(host=args.host, port=args.port)


if __name__ == "__main__":
    cli()


__all__ = ["app", "create_app", "run_server", "cli"]
