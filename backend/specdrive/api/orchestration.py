"""Orchestration API — start/pause runs, advance phases, approve gates, list artifacts."""

from typing import Optional

from fastapi import APIRouter, Header, Query, Request

from specdrive.models.domain import Artifact, Phase, PhaseHistoryEntry, Project
from specdrive.orchestrator.state import OrchestrationProgress

router = APIRouter()


@router.post("/projects/{project_id}/orchestration/start", response_model=OrchestrationProgress)
async def start_orchestration(
    project_id: str,
    request: Request,
    x_user_id: Optional[str] = Header(default=None),
):
    """Begin or resume artifact synthesis for the project's current phase.

    Calling this while a run is active joins the active run.
    Poll the progress endpoint to follow it.
    """
    return await request.app.state.orchestrator.start(project_id, user_id=x_user_id)


@router.post("/projects/{project_id}/orchestration/pause", response_model=OrchestrationProgress)
async def pause_orchestration(
    project_id: str,
    request: Request,
    x_user_id: Optional[str] = Header(default=None),
):
    """Stop the active run. 409 if nothing is running."""
    return await request.app.state.orchestrator.pause(project_id, user_id=x_user_id)


@router.get("/projects/{project_id}/orchestration/progress", response_model=OrchestrationProgress)
async def get_progress(project_id: str, request: Request):
    return await request.app.state.orchestrator.progress(project_id)


@router.post("/projects/{project_id}/phases/advance", response_model=Project)
async def advance_phase(
    project_id: str,
    request: Request,
    x_user_id: Optional[str] = Header(default=None),
):
    """Move the project to the next phase. 409 at the final phase."""
    return await request.app.state.orchestrator.advance(project_id, user_id=x_user_id)


@router.get("/projects/{project_id}/phases/history", response_model=list[PhaseHistoryEntry])
async def get_phase_history(project_id: str, request: Request):
    return await request.app.state.orchestrator.history(project_id)


@router.post("/projects/{project_id}/stack/approve", response_model=Project)
async def approve_stack(
    project_id: str,
    request: Request,
    x_user_id: Optional[str] = Header(default=None),
):
    """Approve the stack. Only allowed during stack_selection."""
    return await request.app.state.orchestrator.approve_stack(project_id, user_id=x_user_id)


@router.post("/projects/{project_id}/dependencies/approve", response_model=Project)
async def approve_dependencies(
    project_id: str,
    request: Request,
    x_user_id: Optional[str] = Header(default=None),
):
    """Approve the dependency set. Only allowed during dependencies."""
    return await request.app.state.orchestrator.approve_dependencies(project_id, user_id=x_user_id)


@router.get("/projects/{project_id}/artifacts", response_model=list[Artifact])
async def list_artifacts(
    project_id: str,
    request: Request,
    phase: Optional[Phase] = Query(default=None),
):
    """All stored artifact versions, oldest first."""
    return await request.app.state.orchestrator.artifacts(project_id, phase=phase)
