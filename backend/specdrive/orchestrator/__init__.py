"""Phase orchestration — per-project actors driving synthesis through the phase sequence."""

from specdrive.orchestrator.clock import Clock, SystemClock
from specdrive.orchestrator.service import Orchestrator
from specdrive.orchestrator.state import OrchestrationProgress, OrchestrationRecord, RunStatus

__all__ = [
    "Clock",
    "SystemClock",
    "Orchestrator",
    "OrchestrationProgress",
    "OrchestrationRecord",
    "RunStatus",
]
