"""Requirement traceability and coverage scoring."""

from specdrive.traceability.engine import TraceabilityEngine, traceability_engine
from specdrive.traceability.models import CoverageReport, RequirementTrace, TraceabilityMatrix

__all__ = [
    "TraceabilityEngine",
    "traceability_engine",
    "CoverageReport",
    "RequirementTrace",
    "TraceabilityMatrix",
]
