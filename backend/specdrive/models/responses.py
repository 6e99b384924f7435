"""API response models."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

from specdrive.validators.models import ValidationReport


class HealthDependency(BaseModel):
    """Health status of a single dependency."""

    status: Literal["healthy", "unhealthy", "degraded"]
    latency_ms: Optional[float] = None
    message: Optional[str] = None


class HealthResponse(BaseModel):
    """System health check response."""

    status: Literal["healthy", "degraded", "unhealthy"]
    version: str = "1.0.0"
    uptime_seconds: float
    dependencies: dict[str, HealthDependency]


class DashboardMetrics(BaseModel):
    total_validations: int
    passed_validations: int
    failed_validations: int
    warning_validations: int
    last_validation: Optional[datetime] = None
    trend: Literal["improving", "declining", "stable"]


class RuleStats(BaseModel):
    total: int
    enabled: int
    by_type: dict[str, int]
    by_severity: dict[str, int]


class DashboardResponse(BaseModel):
    """Validation overview for one project."""

    metrics: DashboardMetrics
    rule_stats: RuleStats
    recent_reports: list[ValidationReport]


class RuleDeletedResponse(BaseModel):
    rule_id: str
    deleted: bool = True
