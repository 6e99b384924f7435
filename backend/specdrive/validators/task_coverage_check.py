"""Task Coverage Check — requirements must show up in the task breakdown."""

from specdrive.validators.artifacts import ArtifactSet
from specdrive.validators.base import BaseRuleCheck
from specdrive.validators.extractors import extract_tasks, overlaps, tokenize
from specdrive.validators.models import CheckOutcome, TaskCoverageRule


class TaskCoverageCheck(BaseRuleCheck):
    """Passes while at most `max_missing_ratio` of requirements lack a task."""

    check = "task_coverage"

    @property
    def name(self) -> str:
        return "TaskCoverageCheck"

    def evaluate(self, rule: TaskCoverageRule, artifacts: ArtifactSet) -> CheckOutcome:
        requirements = self._requirements(artifacts)
        tasks = extract_tasks(artifacts.tasks)

        missing = []
        for req in requirements:
            keywords = tokenize(req.title, min_length=3)
            if not any(overlaps(keywords, task.title) for task in tasks):
                missing.append(req.id)

        covered = len(requirements) - len(missing)
        passed = len(missing) <= len(requirements) * rule.max_missing_ratio

        if not missing:
            message = f"All {len(requirements)} requirement(s) have implementation tasks"
        else:
            message = (
                f"{len(missing)} of {len(requirements)} requirement(s) have no task: "
                f"{', '.join(missing)}"
            )

        return self._outcome(
            passed,
            message,
            total=len(requirements),
            covered=covered,
            missing=missing,
            tasks=len(tasks),
            coverage=self._percent(covered, len(requirements)),
        )
