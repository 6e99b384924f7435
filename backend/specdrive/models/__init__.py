"""Pydantic models shared across the API, orchestrator and validators."""

from specdrive.models.domain import (
    Artifact,
    Phase,
    PhaseHistoryEntry,
    Project,
    PHASE_SEQUENCE,
    next_phase,
    phase_index,
)

__all__ = [
    "Artifact",
    "Phase",
    "PhaseHistoryEntry",
    "Project",
    "PHASE_SEQUENCE",
    "next_phase",
    "phase_index",
]
