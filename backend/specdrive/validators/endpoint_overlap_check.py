"""Endpoint Overlap Check — every REQ-API requirement must map to at least one API path.

A requirement maps to an endpoint when one of its title keywords (longer than
two characters, generic words removed) occurs in the endpoint's path or summary.
"""

from specdrive.validators.artifacts import ArtifactSet
from specdrive.validators.base import BaseRuleCheck
from specdrive.validators.extractors import extract_api_endpoints, overlaps, tokenize
from specdrive.validators.models import CheckOutcome, EndpointOverlapRule
from specdrive.validators.reference_data import GENERIC_API_TOKENS


class EndpointOverlapCheck(BaseRuleCheck):
    """Cross-checks API requirements in the PRD against the API spec."""

    check = "endpoint_overlap"

    @property
    def name(self) -> str:
        return "EndpointOverlapCheck"

    def evaluate(self, rule: EndpointOverlapRule, artifacts: ArtifactSet) -> CheckOutcome:
        requirements = [
            req for req in self._requirements(artifacts)
            if req.id.startswith(rule.id_prefix)
        ]
        endpoints = extract_api_endpoints(artifacts.api_spec)

        matched: dict[str, list[str]] = {}
        unmatched: list[str] = []

        for req in requirements:
            keywords = [t for t in tokenize(req.title, min_length=2) if t not in GENERIC_API_TOKENS]
            hits = [
                endpoint.label for endpoint in endpoints
                if overlaps(keywords, f"{endpoint.path} {endpoint.description}")
            ]
            if hits:
                matched[req.id] = hits
            else:
                unmatched.append(req.id)

        passed = not unmatched
        if passed:
            message = f"All {len(requirements)} {rule.id_prefix}* requirement(s) map to an API endpoint"
        else:
            message = (
                f"{len(unmatched)} of {len(requirements)} {rule.id_prefix}* requirement(s) "
                f"have no matching API endpoint: {', '.join(unmatched)}"
            )

        return self._outcome(
            passed,
            message,
            total=len(requirements),
            matched=len(matched),
            matches=matched,
            unmatched=unmatched,
            endpoints=len(endpoints),
            coverage=self._percent(len(matched), len(requirements)),
        )
