"""Phase gates and progress arithmetic."""

from typing import Optional

from specdrive.models.domain import PHASE_SEQUENCE, Phase, Project, phase_index

# Phase whose completed synthesis waits for the named project flag
GATES: dict[Phase, str] = {
    Phase.STACK_SELECTION: "stack_approved",
    Phase.DEPENDENCIES: "dependencies_approved",
}

# Approval flag → the only phase in which it may be set
GATE_PHASES: dict[str, Phase] = {flag: phase for phase, flag in GATES.items()}

RUNNING_BONUS = 10
RUNNING_CAP = 95


def gate_for(phase: Phase) -> Optional[str]:
    return GATES.get(Phase(phase))


def gate_satisfied(project: Project, phase: Phase) -> bool:
    flag = gate_for(phase)
    return flag is None or bool(getattr(project, flag))


def calculate_progress(phase: Phase, is_running: bool = False) -> int:
    """Percent through the phase sequence, nudged forward while a run is active."""
    progress = round(100 * (phase_index(phase) + 1) / len(PHASE_SEQUENCE))
    if is_running:
        return min(progress + RUNNING_BONUS, RUNNING_CAP)
    return progress
