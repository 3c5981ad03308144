"""Run state and run summary models."""

from enum import Enum

from pydantic import BaseModel, Field


class RunState(str, Enum):
    """Lifecycle of one runner invocation."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    FATAL_STOPPED = "fatal_stopped"


class RunSummary(BaseModel):
    """What a runner invocation did."""

    state: RunState = RunState.IDLE
    dry_run: bool = False
    start_index: int | None = None
    end_index: int | None = None
    total: int = 0
    processed: int = Field(0, description="Domain indices covered, cumulative across resumes")
    validated: int = Field(0, description="Provider lookups that produced a verdict this run")
    skipped: int = Field(0, description="Symbols skipped as already classified or fresh")
    pending: int = Field(0, description="Symbols a dry run would validate")
    active: int = 0
    delisted: int = 0
    newly_active: int = 0
    newly_delisted: int = 0
    transport_errors: int = 0
    storage_errors: int = 0
    escalations: int = 0
    long_breaks: int = 0
    session_refreshes: int = 0
    unresolved: int = 0
    elapsed_seconds: float = 0.0

    @property
    def exit_code(self) -> int:
        """Process exit status: non-zero only for a fatal stop."""
        return 1 if self.state is RunState.FATAL_STOPPED else 0
