"""Category Presence Check — the dependency manifest must back every stack category.

If the stack proposal names React (ui) and PostgreSQL (database), the manifest
needs at least one ui package and one database package.
"""

from specdrive.validators.artifacts import ArtifactSet
from specdrive.validators.base import BaseRuleCheck
from specdrive.validators.extractors import extract_dependencies, extract_stack, stack_categories
from specdrive.validators.models import CategoryPresenceRule, CheckOutcome


class CategoryPresenceCheck(BaseRuleCheck):
    """Cross-checks stack proposal categories against the dependency manifest."""

    check = "category_presence"

    @property
    def name(self) -> str:
        return "CategoryPresenceCheck"

    def evaluate(self, rule: CategoryPresenceRule, artifacts: ArtifactSet) -> CheckOutcome:
        stack = extract_stack(artifacts.stack_proposal)
        required = stack_categories(artifacts.stack_proposal)
        dependencies = extract_dependencies(artifacts.dependencies)
        present = {dep.category for dep in dependencies}

        missing = [category for category in required if category not in present]

        if missing:
            message = f"Dependency manifest has no package for stack categories: {', '.join(missing)}"
        else:
            message = "All stack categories are backed by declared dependencies"

        return self._outcome(
            not missing,
            message,
            stack=stack,
            required_categories=required,
            dependencies=len(dependencies),
            missing=missing,
        )
