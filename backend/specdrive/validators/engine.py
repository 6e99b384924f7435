"""Validation Engine — runs the rule registry against an artifact set, persists the report.

This is the main entry point for cross-artifact validation. It evaluates every
enabled rule through a fixed check table and produces a ValidationReport.

Usage:
    engine = ValidationEngine(ReportStore(store))
    report = await engine.validate_artifacts(project_id, "spec", {"PRD.md": prd, ...})
    if report.overall_status == "fail":
        # Surface report.validation_results to the reviewer
"""

import copy
import time
from collections import Counter
from typing import TYPE_CHECKING, Iterable, Mapping, Optional, Union

import structlog

from specdrive.config import get_settings
from specdrive.models.domain import Artifact, utcnow
from specdrive.validators.artifacts import ArtifactSet, canonical_artifact_name
from specdrive.validators.base import BaseRuleCheck
from specdrive.validators.extractors import extract_requirements
from specdrive.validators.models import (
    CategoryPresenceRule,
    EndpointOverlapRule,
    EntityCoverageRule,
    RuleType,
    Severity,
    TaskCoverageRule,
    TopicConsistencyRule,
    ValidationReport,
    ValidationResult,
    ValidationRule,
)
from specdrive.validators.reference_data import RULE_TYPE_ARTIFACTS

# Import all checks
from specdrive.validators.endpoint_overlap_check import EndpointOverlapCheck
from specdrive.validators.entity_coverage_check import EntityCoverageCheck
from specdrive.validators.task_coverage_check import TaskCoverageCheck
from specdrive.validators.category_presence_check import CategoryPresenceCheck
from specdrive.validators.topic_consistency_check import TopicConsistencyCheck

if TYPE_CHECKING:
    from specdrive.services.report_store import ReportStore

logger = structlog.get_logger()

# Fixed dispatch table: rule `check` tag → evaluator
_CHECKS: dict[str, BaseRuleCheck] = {
    check.check: check
    for check in (
        EndpointOverlapCheck(),
        EntityCoverageCheck(),
        TaskCoverageCheck(),
        CategoryPresenceCheck(),
        TopicConsistencyCheck(),
    )
}


def default_rules() -> list[ValidationRule]:
    """The built-in rule set, one or more per rule type."""
    return [
        EndpointOverlapRule(
            id="REQ-API-001",
            name="API Requirements Coverage",
            description="Every API requirement must have a corresponding endpoint in the API spec",
            severity=Severity.ERROR,
        ),
        EntityCoverageRule(
            id="REQ-DATA-001",
            name="Data Model Coverage",
            description="Data-related requirements must be backed by entities in the data model",
            severity=Severity.ERROR,
        ),
        TaskCoverageRule(
            id="REQ-TASK-001",
            name="Task Coverage",
            description="Requirements should be reflected in the task breakdown",
            severity=Severity.WARNING,
        ),
        CategoryPresenceRule(
            id="STACK-DEP-001",
            name="Stack Dependencies",
            description="Every technology category in the stack proposal must appear in the dependency manifest",
            severity=Severity.WARNING,
        ),
        TopicConsistencyRule(
            id="CROSS-ARTIFACT-001",
            name="Cross-Artifact Consistency",
            description="Key terms should be used consistently across all artifacts",
            severity=Severity.INFO,
            type=RuleType.REQUIREMENT_API,
        ),
    ]


class ValidationEngine:
    """Owns the rule registry and evaluates it against artifact sets.

    Design principles:
        - Deterministic: same rules + artifacts → same results
        - Total: one failing evaluator never aborts the run
        - Snapshot: rule changes only affect runs started afterwards
    """

    def __init__(
        self,
        report_store: "ReportStore",
        rules: Optional[list[ValidationRule]] = None,
    ):
        self.report_store = report_store
        self._rules: list[ValidationRule] = list(rules) if rules is not None else default_rules()

    # ── Rule registry ──

    def get_rules(self) -> list[ValidationRule]:
        """Deep copy of the registry; editing it never touches the live rules."""
        return copy.deepcopy(self._rules)

    def get_rule(self, rule_id: str) -> Optional[ValidationRule]:
        for rule in self._rules:
            if rule.id == rule_id:
                return rule.model_copy(deep=True)
        return None

    def add_rule(self, rule: ValidationRule) -> None:
        """Register a rule, replacing any existing rule with the same id."""
        self._rules = [r for r in self._rules if r.id != rule.id] + [rule.model_copy(deep=True)]
        logger.info("validation_rule_added", rule_id=rule.id, check=rule.check)

    def set_rule_enabled(self, rule_id: str, enabled: bool) -> bool:
        """Toggle a rule. Returns False if no rule has that id."""
        for index, rule in enumerate(self._rules):
            if rule.id == rule_id:
                self._rules[index] = rule.model_copy(update={"enabled": enabled})
                logger.info("validation_rule_toggled", rule_id=rule_id, enabled=enabled)
                return True
        return False

    def remove_rule(self, rule_id: str) -> bool:
        remaining = [r for r in self._rules if r.id != rule_id]
        removed = len(remaining) != len(self._rules)
        self._rules = remaining
        return removed

    async def load_rules(self) -> None:
        """Replace the registry with stored rules; seed the store with defaults if it is empty."""
        stored = await self.report_store.load_rules()
        if stored:
            self._rules = stored
        else:
            await self.save_rules()
        logger.info("validation_rules_loaded", count=len(self._rules), from_store=bool(stored))

    async def save_rules(self) -> None:
        for rule in self._rules:
            await self.report_store.save_rule(rule)

    # ── Validation ──

    async def validate_artifacts(
        self,
        project_id: str,
        phase: str,
        artifacts: Union[ArtifactSet, Mapping[str, Optional[str]], None],
    ) -> ValidationReport:
        """Run every enabled rule against the artifacts and persist the report.

        Args:
            project_id: Project the artifacts belong to
            phase: Phase label recorded on the report
            artifacts: Artifact name → content (aliases accepted) or an ArtifactSet

        Returns:
            The persisted ValidationReport
        """
        start_time = time.perf_counter()

        artifact_set = artifacts if isinstance(artifacts, ArtifactSet) else ArtifactSet(artifacts)
        enabled = [rule for rule in self._rules if rule.enabled]
        requirement_ids = [req.id for req in extract_requirements(artifact_set.requirements)]

        results = [self._evaluate(rule, artifact_set, requirement_ids) for rule in enabled]

        report = ValidationReport.build(
            project_id=project_id,
            phase=phase,
            results=results,
            artifacts_validated=len(artifact_set),
        )
        await self.report_store.save(report)

        logger.info(
            "validation_complete",
            project_id=project_id,
            phase=phase,
            status=report.overall_status,
            total_rules=report.total_rules,
            failed_rules=report.failed_rules,
            warning_rules=report.warning_rules,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return report

    def _evaluate(
        self,
        rule: ValidationRule,
        artifact_set: ArtifactSet,
        requirement_ids: list[str],
    ) -> ValidationResult:
        if rule.check == "topic_consistency":
            affected = artifact_set.present(artifact_set.names)
        else:
            affected = artifact_set.present(RULE_TYPE_ARTIFACTS.get(rule.type, []))

        try:
            outcome = _CHECKS[rule.check].evaluate(rule, artifact_set)
        except Exception as e:
            logger.error(
                "rule_evaluation_failed",
                rule_id=rule.id,
                check=rule.check,
                error=str(e),
                error_type=type(e).__name__,
            )
            # Converted into a failing result for this rule only
            return ValidationResult(
                rule_id=rule.id,
                rule_name=rule.name,
                passed=False,
                severity=rule.severity,
                message=f"Rule evaluation failed: {e}",
                details={"error": str(e), "error_type": type(e).__name__},
                affected_artifacts=affected,
                affected_requirements=[],
            )

        message = outcome.message or (f"{rule.name} passed" if outcome.passed else f"{rule.name} failed")
        return ValidationResult(
            rule_id=rule.id,
            rule_name=rule.name,
            passed=outcome.passed,
            severity=rule.severity,
            message=message,
            details=outcome.details,
            affected_artifacts=affected,
            affected_requirements=requirement_ids,
        )

    # ── History ──

    async def get_validation_history(self, project_id: str, limit: Optional[int] = None) -> list[ValidationReport]:
        """Persisted reports for a project, newest first, capped at `limit`."""
        if limit is None:
            limit = get_settings().VALIDATION_HISTORY_LIMIT
        return await self.report_store.history(project_id, limit)

    async def get_validation_report(self, report_id: str) -> Optional[ValidationReport]:
        """The report with this id, or None when it does not exist."""
        return await self.report_store.get(report_id)

    # ── Write-back ──

    async def write_back(self, report: ValidationReport, artifacts: Iterable[Artifact]) -> list[Artifact]:
        """Set each artifact's validation_status from the report's failing results.

        fail: a failing error-severity result names the artifact
        warn: a failing warning-severity result names it
        pass: otherwise
        """
        failing = [r for r in report.validation_results if not r.passed]

        updated = []
        for artifact in artifacts:
            name = canonical_artifact_name(artifact.artifact_name)
            naming = [r for r in failing if name in (r.affected_artifacts or [])]
            severities = {r.severity for r in naming}

            if Severity.ERROR.value in severities:
                status = "fail"
            elif Severity.WARNING.value in severities:
                status = "warn"
            else:
                status = "pass"

            errors = [
                f"{r.rule_id}: {r.message}" for r in naming
                if r.severity in (Severity.ERROR.value, Severity.WARNING.value)
            ]
            artifact = artifact.model_copy(update={
                "validation_status": status,
                "validation_errors": errors,
                "updated_at": utcnow(),
            })
            await self.report_store.store.update_artifact(artifact)
            updated.append(artifact)

        logger.info(
            "validation_written_back",
            report_id=report.id,
            project_id=report.project_id,
            artifacts=len(updated),
        )
        return updated

    # ── Dashboard ──

    async def dashboard(self, project_id: str) -> dict:
        """Recent-report metrics, rule statistics and the latest reports."""
        reports = await self.get_validation_history(project_id, get_settings().DASHBOARD_HISTORY_LIMIT)
        statuses = Counter(r.overall_status for r in reports)

        metrics = {
            "total_validations": len(reports),
            "passed_validations": statuses["pass"],
            "failed_validations": statuses["fail"],
            "warning_validations": statuses["warning"],
            "last_validation": reports[0].created_at if reports else None,
            "trend": _trend(reports),
        }

        rules = self._rules
        rule_stats = {
            "total": len(rules),
            "enabled": sum(1 for r in rules if r.enabled),
            "by_type": {t.value: sum(1 for r in rules if r.type == t.value) for t in RuleType},
            "by_severity": {s.value: sum(1 for r in rules if r.severity == s.value) for s in Severity},
        }

        return {
            "metrics": metrics,
            "rule_stats": rule_stats,
            "recent_reports": reports[:3],
        }


def _pass_rate(report: ValidationReport) -> float:
    if report.total_rules == 0:
        return 1.0
    return report.passed_rules / report.total_rules


def _trend(reports: list[ValidationReport]) -> str:
    """Compare the pass rate of the newest report with the one before it."""
    if len(reports) < 2:
        return "stable"
    latest, previous = _pass_rate(reports[0]), _pass_rate(reports[1])
    if latest > previous:
        return "improving"
    if latest < previous:
        return "declining"
    return "stable"
