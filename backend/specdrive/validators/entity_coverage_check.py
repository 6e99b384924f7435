"""Entity Coverage Check — the data model must carry enough entities for the PRD."""

import math

from specdrive.validators.artifacts import ArtifactSet
from specdrive.validators.base import BaseRuleCheck
from specdrive.validators.extractors import extract_data_entities
from specdrive.validators.models import CheckOutcome, EntityCoverageRule


class EntityCoverageCheck(BaseRuleCheck):
    """Requires one data entity per `requirements_per_entity` data-related requirements."""

    check = "entity_coverage"

    @property
    def name(self) -> str:
        return "EntityCoverageCheck"

    def evaluate(self, rule: EntityCoverageRule, artifacts: ArtifactSet) -> CheckOutcome:
        keywords = [kw.lower() for kw in rule.data_keywords]
        data_related = [
            req for req in self._requirements(artifacts)
            if any(kw in req.description.lower() for kw in keywords)
        ]
        entities = extract_data_entities(artifacts.data_model)
        required = math.ceil(len(data_related) / rule.requirements_per_entity)

        passed = len(entities) >= required
        if passed:
            message = f"{len(entities)} data entities cover {len(data_related)} data-related requirement(s)"
        else:
            message = (
                f"Data model defines {len(entities)} entities but {len(data_related)} "
                f"data-related requirement(s) need at least {required}"
            )

        return self._outcome(
            passed,
            message,
            data_related_requirements=[req.id for req in data_related],
            entities=[entity.name for entity in entities],
            required_entities=required,
            coverage="sufficient" if passed else "insufficient",
        )
