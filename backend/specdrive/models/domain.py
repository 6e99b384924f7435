"""Domain records kept in the store of record: projects, artifacts, phase history."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class Phase(str, Enum):
    """Delivery phases, declared in their fixed execution order."""

    ANALYSIS = "analysis"
    STACK_SELECTION = "stack_selection"
    SPEC = "spec"
    DEPENDENCIES = "dependencies"
    SOLUTIONING = "solutioning"
    DONE = "done"


PHASE_SEQUENCE: list[Phase] = list(Phase)

ArtifactValidationStatus = Literal["pending", "pass", "warn", "fail"]


def phase_index(phase: Phase) -> int:
    return PHASE_SEQUENCE.index(Phase(phase))


def next_phase(phase: Phase) -> Optional[Phase]:
    """Phase following `phase`, or None at the terminal phase."""
    index = phase_index(phase)
    if index >= len(PHASE_SEQUENCE) - 1:
        return None
    return PHASE_SEQUENCE[index + 1]


class Project(BaseModel):
    """A project moving through the delivery phases."""

    id: str = Field(default_factory=new_id)
    slug: str
    name: str
    description: str = ""
    idea: str = ""
    user_id: Optional[str] = None
    current_phase: Phase = Phase.ANALYSIS
    phases_completed: list[Phase] = Field(default_factory=list)
    stack_approved: bool = False
    dependencies_approved: bool = False
    orchestration_state: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class PhaseHistoryEntry(BaseModel):
    """Append-only record of a single phase transition."""

    id: str = Field(default_factory=new_id)
    project_id: str
    from_phase: Optional[Phase] = None
    to_phase: Phase
    artifacts_generated: list[str] = Field(default_factory=list)
    validation_passed: bool = True
    transitioned_by: Optional[str] = None
    transitioned_at: datetime = Field(default_factory=utcnow)


class Artifact(BaseModel):
    """A named document synthesized during a phase."""

    id: str = Field(default_factory=new_id)
    project_id: str
    phase: Phase
    artifact_name: str
    version: str = "1.0.0"
    validation_status: ArtifactValidationStatus = "pending"
    validation_errors: list[str] = Field(default_factory=list)
    quality_score: Optional[int] = Field(default=None, ge=0, le=100)
    content: str = ""
    content_hash: Optional[str] = None
    agent_label: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
