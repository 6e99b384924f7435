"""Base rule check — abstract evaluator behind one rule variant (Strategy Pattern).

Each check is a standalone, independently testable unit. The engine owns a
fixed table from a rule's `check` tag to one of these evaluators.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from specdrive.validators.artifacts import ArtifactSet
from specdrive.validators.extractors import Requirement, extract_requirements
from specdrive.validators.models import CheckOutcome


class BaseRuleCheck(ABC):
    """Abstract base for all rule evaluators.

    Contract:
        - evaluate() is deterministic: same rule + artifacts → same outcome
        - evaluate() reads only the ArtifactSet; no network, no randomness
        - missing artifacts read as empty text, so an empty set passes vacuously
    """

    #: The `check` tag this evaluator serves
    check: str = ""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for logging."""
        ...

    @abstractmethod
    def evaluate(self, rule: Any, artifacts: ArtifactSet) -> CheckOutcome:
        """Run the check for `rule` against the artifact set.

        Args:
            rule: The rule variant carrying this check's parameters
            artifacts: Canonicalized artifact contents

        Returns:
            CheckOutcome with pass/fail, details and an optional message
        """
        ...

    # ── Helper Methods ──

    def _outcome(
        self,
        passed: bool,
        message: Optional[str] = None,
        **details: Any,
    ) -> CheckOutcome:
        """Convenience method to create a CheckOutcome."""
        return CheckOutcome(passed=passed, message=message, details=details)

    def _requirements(self, artifacts: ArtifactSet) -> list[Requirement]:
        return extract_requirements(artifacts.requirements)

    @staticmethod
    def _percent(part: int, total: int) -> int:
        """Integer percentage; an empty total counts as fully covered."""
        if total == 0:
            return 100
        return round(part / total * 100)
