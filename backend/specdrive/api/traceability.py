"""Traceability API — requirement coverage computed from the current artifacts."""

from typing import Optional

from fastapi import APIRouter, Query, Request

from specdrive.models.domain import Phase
from specdrive.traceability import CoverageReport, TraceabilityMatrix, traceability_engine
from specdrive.validators.artifacts import ArtifactSet, latest_by_name

router = APIRouter()


async def _matrix(project_id: str, request: Request) -> tuple[TraceabilityMatrix, Phase]:
    orchestrator = request.app.state.orchestrator
    project = await orchestrator.get_project(project_id)
    artifacts = latest_by_name(await orchestrator.artifacts(project_id))
    matrix = traceability_engine.generate_traceability_matrix(
        project_id,
        ArtifactSet.from_artifacts(artifacts),
        project_name=project.name,
    )
    return matrix, project.current_phase


@router.get("/projects/{project_id}/traceability", response_model=TraceabilityMatrix)
async def get_traceability_matrix(project_id: str, request: Request):
    matrix, _ = await _matrix(project_id, request)
    return matrix


@router.get("/projects/{project_id}/coverage", response_model=CoverageReport)
async def get_coverage_report(
    project_id: str,
    request: Request,
    phase: Optional[Phase] = Query(default=None),
):
    """Coverage report; `phase` defaults to the project's current phase."""
    matrix, current_phase = await _matrix(project_id, request)
    return traceability_engine.generate_coverage_report(project_id, (phase or current_phase).value, matrix)
