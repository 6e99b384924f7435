"""Cross-artifact validation — deterministic rule checks over synthesized documents.

Usage:
    from specdrive.validators import ValidationEngine

    engine = ValidationEngine(report_store)
    report = await engine.validate_artifacts(project_id, phase, artifacts)
    if report.overall_status == "fail":
        # Show report.validation_results to the reviewer before approving
"""

from specdrive.validators.engine import ValidationEngine, default_rules
from specdrive.validators.models import (
    RuleType,
    Severity,
    ValidationReport,
    ValidationResult,
    ValidationRule,
    parse_rule,
)

__all__ = [
    "ValidationEngine",
    "default_rules",
    "RuleType",
    "Severity",
    "ValidationReport",
    "ValidationResult",
    "ValidationRule",
    "parse_rule",
]
