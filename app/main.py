"""
Retrieve Monitor - Health API

Small FastAPI application exposing the liveness state of a running monitor.
The monitor process serves it with uvicorn when ``health_api_enabled`` is set.
"""

import sys
import threading
from typing import Optional

import uvicorn
from fastapi import FastAPI
from loguru import logger

from app.api import health
from app.utils.config import Settings, get_settings
from domains.file_ingest.collectors.liveness import MonitorState

LOG_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"


def configure_logging(level: str = "INFO") -> None:
    """Replace the default loguru sink with the application's stdout sink."""
    logger.remove()
    logger.add(sys.stdout, format=LOG_FORMAT, level=level)


def create_app(state: MonitorState, settings: Optional[Settings] = None) -> FastAPI:
    """Create the health API bound to ``state``."""
    settings = settings or get_settings()
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="Liveness of the DocuSign Retrieve index monitor",
    )
    app.state.monitor = state
    app.state.settings = settings

    app.include_router(health.router, tags=["Health"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": settings.api_title,
            "version": settings.api_version,
            "health": "/health"
        }

    return app


def start_health_server(state: MonitorState, settings: Settings) -> uvicorn.Server:
    """Serve the health API from a daemon thread."""
    config = uvicorn.Config(
        create_app(state, settings),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, name="health-api", daemon=True)
    thread.start()
    logger.info(f"Health API listening on http://{settings.api_host}:{settings.api_port}/health")
    return server
