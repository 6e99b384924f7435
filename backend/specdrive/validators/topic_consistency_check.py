"""Topic Consistency Check — shared terms should appear in every artifact or in none."""

from specdrive.validators.artifacts import ArtifactSet
from specdrive.validators.base import BaseRuleCheck
from specdrive.validators.models import CheckOutcome, TopicConsistencyRule


class TopicConsistencyCheck(BaseRuleCheck):
    """Flags terms mentioned by some artifacts but missing from others."""

    check = "topic_consistency"

    @property
    def name(self) -> str:
        return "TopicConsistencyCheck"

    def evaluate(self, rule: TopicConsistencyRule, artifacts: ArtifactSet) -> CheckOutcome:
        contents = {name: content.lower() for name, content in artifacts.items() if content}

        issues = []
        for term in rule.terms:
            term_lower = term.lower()
            mentioned_in = [name for name, text in contents.items() if term_lower in text]
            if mentioned_in and len(mentioned_in) < len(contents):
                issues.append({
                    "term": term,
                    "mentioned_in": mentioned_in,
                    "missing_in": [name for name in contents if name not in mentioned_in],
                })

        passed = not issues
        if passed:
            message = f"Terminology is consistent across {len(contents)} artifact(s)"
        else:
            message = f"Inconsistent terminology across artifacts: {', '.join(i['term'] for i in issues)}"

        return self._outcome(
            passed,
            message,
            total_artifacts=len(contents),
            consistency_issues=issues,
        )
