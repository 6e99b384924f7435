"""Traceability Engine — requirement coverage across API spec, data model and tasks.

Standalone and side-effect free: it reads artifact text, never the store, and
degrades malformed input to "no matches".
"""

from typing import Mapping, Optional, Union

import structlog

from specdrive.traceability.models import (
    CoverageReport,
    ImpactAnalysisItem,
    RequirementTrace,
    TraceabilityMatrix,
)
from specdrive.validators.artifacts import ArtifactSet
from specdrive.validators.extractors import (
    DataEntity,
    Endpoint,
    Task,
    extract_api_endpoints,
    extract_data_entities,
    extract_requirements,
    extract_tasks,
    overlaps,
    tokenize,
)

logger = structlog.get_logger()

# Points per matched item, each signal capped at 100
API_WEIGHT = 30
DATA_WEIGHT = 40
TASK_WEIGHT = 30

TASK_TITLE_LIMIT = 50

REFINEMENT_THRESHOLD = 80
CRITICAL_THRESHOLD = 60


class TraceabilityEngine:
    """Builds traceability matrices and coverage reports."""

    def generate_traceability_matrix(
        self,
        project_id: str,
        artifacts: Union[ArtifactSet, Mapping[str, Optional[str]], None],
        project_name: Optional[str] = None,
    ) -> TraceabilityMatrix:
        """Trace every requirement in the PRD to endpoints, entities and tasks.

        Args:
            project_id: Project the artifacts belong to
            artifacts: Artifact name → content (aliases accepted) or an ArtifactSet
            project_name: Echoed on the matrix for display

        Returns:
            TraceabilityMatrix with one trace per requirement, in document order
        """
        artifact_set = artifacts if isinstance(artifacts, ArtifactSet) else ArtifactSet(artifacts)

        requirements = extract_requirements(artifact_set.requirements)
        endpoints = extract_api_endpoints(artifact_set.api_spec)
        entities = extract_data_entities(artifact_set.data_model)
        tasks = extract_tasks(artifact_set.tasks)

        traces = []
        for req in requirements:
            matched_apis = _match_endpoints(req.title, endpoints)
            matched_entities = _match_entities(req.title, entities)
            matched_tasks = _match_tasks(req.title, tasks)
            coverage = calculate_coverage(len(matched_apis), len(matched_entities), len(matched_tasks))

            traces.append(RequirementTrace(
                requirement_id=req.id,
                title=req.title,
                category=req.category,
                api_endpoints=matched_apis,
                data_entities=matched_entities,
                tasks=matched_tasks,
                coverage=coverage,
                status=coverage_status(coverage),
            ))

        overall = sum(t.coverage for t in traces) / len(traces) if traces else 0.0

        matrix = TraceabilityMatrix(
            project_id=project_id,
            project_name=project_name,
            requirements=traces,
            total_requirements=len(traces),
            total_covered=sum(1 for t in traces if t.status == "covered"),
            total_partial=sum(1 for t in traces if t.status == "partial"),
            total_uncovered=sum(1 for t in traces if t.status == "uncovered"),
            overall_coverage=overall,
        )

        logger.info(
            "traceability_matrix_generated",
            project_id=project_id,
            requirements=matrix.total_requirements,
            overall_coverage=round(overall, 2),
        )
        return matrix

    def generate_coverage_report(
        self,
        project_id: str,
        phase: str,
        matrix: TraceabilityMatrix,
    ) -> CoverageReport:
        """Per-signal coverage, impact of gaps and follow-up recommendations."""
        total = matrix.total_requirements

        def signal_coverage(attr: str) -> int:
            if total == 0:
                return 0
            with_signal = sum(1 for t in matrix.requirements if getattr(t, attr))
            return round(with_signal / total * 100)

        return CoverageReport(
            project_id=project_id,
            phase=phase,
            overall_coverage=matrix.overall_coverage,
            requirement_coverage=(matrix.total_covered / total * 100) if total else 0.0,
            api_coverage=signal_coverage("api_endpoints"),
            data_coverage=signal_coverage("data_entities"),
            task_coverage=signal_coverage("tasks"),
            impact_analysis=_analyze_impact(matrix),
            recommendations=_recommendations(matrix),
        )


# ── Scoring ──


def calculate_coverage(api_matches: int, entity_matches: int, task_matches: int) -> int:
    """Mean over the signal types that have at least one match; 0 when none do."""
    scores = []
    if api_matches > 0:
        scores.append(min(100, api_matches * API_WEIGHT))
    if entity_matches > 0:
        scores.append(min(100, entity_matches * DATA_WEIGHT))
    if task_matches > 0:
        scores.append(min(100, task_matches * TASK_WEIGHT))
    if not scores:
        return 0
    return round(sum(scores) / len(scores))


def coverage_status(coverage: int) -> str:
    if coverage == 100:
        return "covered"
    if coverage >= 50:
        return "partial"
    return "uncovered"


# ── Matching ──


def _match_endpoints(title: str, endpoints: list[Endpoint]) -> list[str]:
    keywords = tokenize(title, min_length=2)
    return [e.label for e in endpoints if overlaps(keywords, f"{e.path} {e.description}")]


def _match_entities(title: str, entities: list[DataEntity]) -> list[str]:
    keywords = tokenize(title, min_length=2)
    return [e.name for e in entities if overlaps(keywords, f"{e.name} {e.description}")]


def _match_tasks(title: str, tasks: list[Task]) -> list[str]:
    keywords = tokenize(title, min_length=3)
    return [t.title[:TASK_TITLE_LIMIT] for t in tasks if overlaps(keywords, t.title)]


# ── Reporting ──


def _analyze_impact(matrix: TraceabilityMatrix) -> list[ImpactAnalysisItem]:
    items = []
    for trace in matrix.requirements:
        if trace.status == "covered":
            continue

        missing = []
        if not trace.api_endpoints:
            missing.append("API Endpoints")
        if not trace.data_entities:
            missing.append("Data Model")
        if not trace.tasks:
            missing.append("Implementation Tasks")

        if trace.status == "uncovered":
            risk = "high"
        elif len(missing) >= 2:
            risk = "medium"
        else:
            risk = "low"

        items.append(ImpactAnalysisItem(
            requirement_id=trace.requirement_id,
            requirement=trace.title,
            missing_signals=missing,
            risk_level=risk,
            impact=f"Missing coverage in: {', '.join(missing)}" if missing else "Coverage below target",
        ))
    return items


def _recommendations(matrix: TraceabilityMatrix) -> list[str]:
    recommendations = []

    if matrix.total_uncovered > 0:
        recommendations.append(
            f"{matrix.total_uncovered} requirements are uncovered. "
            "Review and add corresponding artifacts."
        )
    if matrix.total_partial > 0:
        recommendations.append(
            f"{matrix.total_partial} requirements have partial coverage. "
            "Consider adding missing API endpoints or data entities."
        )
    if matrix.overall_coverage < REFINEMENT_THRESHOLD:
        recommendations.append(
            "Overall coverage is below 80%. Consider conducting a requirements refinement session."
        )
    if matrix.overall_coverage < CRITICAL_THRESHOLD:
        recommendations.append(
            "Critical: Coverage is below 60%. Recommend immediate action to improve artifact alignment."
        )
    return recommendations


# Module-level singleton
traceability_engine = TraceabilityEngine()
