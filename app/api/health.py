"""
Health check endpoint.
"""

from datetime import datetime

from fastapi import APIRouter, Request

from app.models.schemas import HealthResponse
from app.utils.config import get_settings

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check endpoint.

    Reports whether the batch worker has sent a heartbeat within the
    watchdog timeout, plus run counters.
    """
    state = request.app.state.monitor
    settings = getattr(request.app.state, "settings", None) or get_settings()

    return HealthResponse(
        status="stalled" if state.is_stalled() else "healthy",
        timestamp=datetime.now(),
        last_heartbeat=state.last_heartbeat,
        seconds_since_heartbeat=round(state.seconds_since_heartbeat(), 3),
        runs_completed=state.runs_completed,
        runs_failed=state.runs_failed,
        last_run_at=state.last_run_at,
        last_error=state.last_error,
        version=settings.api_version
    )
