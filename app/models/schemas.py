"""
Pydantic models for the Retrieve Monitor.

Shared data models across the application.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


# =====================================================
# Batch Models
# =====================================================

class RowOutcome(BaseModel):
    """Result of one data row."""
    record_id: str
    suffix: int = 0
    path: str
    status: str  # created, skipped
    reason: Optional[str] = None  # ingest_collision, output_collision


class BatchReport(BaseModel):
    """Summary of one batch run over an index file."""
    run_id: str
    input_path: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    headers: List[str] = Field(default_factory=list)
    outcomes: List[RowOutcome] = Field(default_factory=list)
    blank_rows: int = 0
    empty_input: bool = False
    archived_path: Optional[str] = None
    moved: List[str] = Field(default_factory=list)
    discarded: List[str] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def created(self) -> List[RowOutcome]:
        return [o for o in self.outcomes if o.status == "created"]

    @property
    def skipped(self) -> List[RowOutcome]:
        return [o for o in self.outcomes if o.status == "skipped"]


# =====================================================
# Health Models
# =====================================================

class HealthResponse(BaseModel):
    """Health check response model."""
    status: str  # healthy, stalled
    timestamp: datetime
    last_heartbeat: datetime
    seconds_since_heartbeat: float
    runs_completed: int = 0
    runs_failed: int = 0
    last_run_at: Optional[datetime] = None
    last_error: Optional[str] = None
    version: str
