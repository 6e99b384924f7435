"""Validation models — rule variants, per-rule results, and the report structure.

Rules are data, not code: each variant names a fixed evaluator through its
`check` tag and carries only that evaluator's parameters.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from specdrive.models.domain import new_id, utcnow

ENGINE_NAME = "Cross-Artifact Validation v1.0"


class Severity(str, Enum):
    """Rule severity levels."""

    ERROR = "error"      # Blocks: report status becomes fail
    WARNING = "warning"  # Report status becomes warning
    INFO = "info"        # Informational, never changes report status


class RuleType(str, Enum):
    """Which pair of artifacts a rule cross-checks."""

    REQUIREMENT_API = "requirement_api"
    REQUIREMENT_DATA = "requirement_data"
    REQUIREMENT_TASK = "requirement_task"
    STACK_DEPENDENCY = "stack_dependency"


ReportStatus = Literal["pass", "warning", "fail"]


# ── Rule variants ──


class _RuleBase(BaseModel):
    id: str
    name: str
    description: str = ""
    severity: Severity = Severity.ERROR
    enabled: bool = True

    model_config = {"use_enum_values": True}


class EndpointOverlapRule(_RuleBase):
    """Every requirement with the id prefix must keyword-overlap an API path."""

    check: Literal["endpoint_overlap"] = "endpoint_overlap"
    type: Literal["requirement_api"] = "requirement_api"
    id_prefix: str = "REQ-API-"


class EntityCoverageRule(_RuleBase):
    """The data model must define enough entities for data-related requirements."""

    check: Literal["entity_coverage"] = "entity_coverage"
    type: Literal["requirement_data"] = "requirement_data"
    data_keywords: list[str] = Field(default_factory=lambda: [
        "data", "entity", "store", "database", "information", "user", "profile", "account",
    ])
    requirements_per_entity: int = Field(default=3, ge=1)


class TaskCoverageRule(_RuleBase):
    """Requirements must be reflected in the task breakdown."""

    check: Literal["task_coverage"] = "task_coverage"
    type: Literal["requirement_task"] = "requirement_task"
    max_missing_ratio: float = Field(default=0.2, ge=0.0, le=1.0)


class CategoryPresenceRule(_RuleBase):
    """Dependency categories implied by the stack must appear in the manifest."""

    check: Literal["category_presence"] = "category_presence"
    type: Literal["stack_dependency"] = "stack_dependency"


class TopicConsistencyRule(_RuleBase):
    """Shared terms should be mentioned consistently across all artifacts."""

    check: Literal["topic_consistency"] = "topic_consistency"
    type: RuleType = RuleType.REQUIREMENT_API
    terms: list[str] = Field(default_factory=lambda: [
        "user", "authentication", "data", "api", "database",
    ])


ValidationRule = Annotated[
    Union[
        EndpointOverlapRule,
        EntityCoverageRule,
        TaskCoverageRule,
        CategoryPresenceRule,
        TopicConsistencyRule,
    ],
    Field(discriminator="check"),
]

rule_adapter: TypeAdapter = TypeAdapter(ValidationRule)


def parse_rule(data: dict) -> ValidationRule:
    """Build the matching rule variant from a plain dict (API body, stored JSON)."""
    return rule_adapter.validate_python(data)


# ── Results ──


class CheckOutcome(BaseModel):
    """Raw evaluator output before it is wrapped into a ValidationResult."""

    passed: bool
    details: dict[str, Any] = Field(default_factory=dict)
    message: Optional[str] = None


class ValidationResult(BaseModel):
    """Outcome of one rule against the artifact set."""

    rule_id: str
    rule_name: str
    passed: bool
    severity: Severity
    message: str
    details: Optional[dict[str, Any]] = None
    affected_artifacts: Optional[list[str]] = None
    affected_requirements: Optional[list[str]] = None

    model_config = {"use_enum_values": True}


class ReportMetadata(BaseModel):
    validated_at: datetime = Field(default_factory=utcnow)
    artifacts_validated: int = 0
    validation_engine: str = ENGINE_NAME


class ValidationReport(BaseModel):
    """Complete validation report. Frozen: never edited after creation."""

    id: str = Field(default_factory=new_id)
    project_id: str
    phase: str
    report_name: str
    overall_status: ReportStatus
    total_rules: int
    passed_rules: int = 0
    failed_rules: int = 0
    warning_rules: int = 0
    validation_results: list[ValidationResult] = Field(default_factory=list)
    report_metadata: ReportMetadata = Field(default_factory=ReportMetadata)
    created_at: datetime = Field(default_factory=utcnow)

    model_config = {"frozen": True}

    @classmethod
    def build(
        cls,
        project_id: str,
        phase: str,
        results: list[ValidationResult],
        artifacts_validated: int = 0,
    ) -> "ValidationReport":
        """Build a report from rule results; status and counts are derived here only."""
        passed_rules = sum(1 for r in results if r.passed)
        failed_rules = sum(1 for r in results if not r.passed and r.severity == Severity.ERROR)
        warning_rules = sum(1 for r in results if not r.passed and r.severity == Severity.WARNING)

        if failed_rules > 0:
            overall_status = "fail"
        elif warning_rules > 0:
            overall_status = "warning"
        else:
            overall_status = "pass"

        return cls(
            project_id=project_id,
            phase=phase,
            report_name=f"Validation Report - {phase}",
            overall_status=overall_status,
            total_rules=len(results),
            passed_rules=passed_rules,
            failed_rules=failed_rules,
            warning_rules=warning_rules,
            validation_results=results,
            report_metadata=ReportMetadata(artifacts_validated=artifacts_validated),
        )
