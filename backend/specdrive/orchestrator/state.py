"""Orchestration state — the persisted run record, actor messages and progress view."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field

from specdrive.models.domain import Phase, PhaseHistoryEntry, utcnow


class RunStatus(str, Enum):
    """Lifecycle of a project's synthesis run."""

    IDLE = "idle"
    RUNNING = "running"
    AWAITING_APPROVAL = "awaiting_approval"  # Halted at a gate until the flag is set
    PAUSED = "paused"
    FAILED = "failed"
    COMPLETED = "completed"  # Reached the terminal phase


class OrchestrationRecord(BaseModel):
    """Run bookkeeping stored in `Project.orchestration_state`.

    `version` increases on every write. `step_index` is the next plan step to
    synthesize in `phase`; a paused or failed run resumes from it.
    """

    project_id: str
    version: int = 0
    status: RunStatus = RunStatus.IDLE
    phase: Phase
    run_id: Optional[str] = None
    step_index: int = 0
    current_agent_label: Optional[str] = None
    estimated_remaining_seconds: Optional[float] = None
    started_at: Optional[datetime] = None
    started_by: Optional[str] = None
    last_error: Optional[str] = None
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_running(self) -> bool:
        return self.status == RunStatus.RUNNING


class OrchestrationProgress(BaseModel):
    """What `progress()` reports for a project."""

    project_id: str
    current_phase: Phase
    percent_complete: int
    is_running: bool
    status: RunStatus
    current_agent_label: Optional[str] = None
    estimated_remaining: Optional[float] = None
    last_error: Optional[str] = None
    phase_history: list[PhaseHistoryEntry] = Field(default_factory=list)


# ── Actor messages ──


@dataclass(frozen=True)
class Start:
    user_id: Optional[str] = None


@dataclass(frozen=True)
class Pause:
    user_id: Optional[str] = None


@dataclass(frozen=True)
class Advance:
    user_id: Optional[str] = None


@dataclass(frozen=True)
class Approve:
    flag: str
    user_id: Optional[str] = None


@dataclass(frozen=True)
class StepCompleted:
    run_id: str
    step_index: int


Message = Union[Start, Pause, Advance, Approve, StepCompleted]
