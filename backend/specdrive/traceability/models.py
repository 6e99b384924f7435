"""Traceability models — per-requirement traces, the matrix, and the coverage report."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from specdrive.models.domain import utcnow

TraceStatus = Literal["covered", "partial", "uncovered"]
RiskLevel = Literal["high", "medium", "low"]


class RequirementTrace(BaseModel):
    """How one requirement is reflected across API, data model and tasks."""

    requirement_id: str
    title: str
    category: str
    api_endpoints: list[str] = Field(default_factory=list)
    data_entities: list[str] = Field(default_factory=list)
    tasks: list[str] = Field(default_factory=list)
    coverage: int = Field(ge=0, le=100)
    status: TraceStatus


class TraceabilityMatrix(BaseModel):
    """Recomputed from scratch on every request; never stored."""

    project_id: str
    project_name: Optional[str] = None
    requirements: list[RequirementTrace] = Field(default_factory=list)
    total_requirements: int = 0
    total_covered: int = 0
    total_partial: int = 0
    total_uncovered: int = 0
    overall_coverage: float = 0.0
    generated_at: datetime = Field(default_factory=utcnow)


class ImpactAnalysisItem(BaseModel):
    requirement_id: str
    requirement: str
    missing_signals: list[str]
    risk_level: RiskLevel
    impact: str


class CoverageReport(BaseModel):
    project_id: str
    phase: str
    overall_coverage: float
    requirement_coverage: float
    api_coverage: int
    data_coverage: int
    task_coverage: int
    impact_analysis: list[ImpactAnalysisItem] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
