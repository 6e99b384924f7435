"""Validation API — run validation, browse reports, manage rules."""

from fastapi import APIRouter, Body, HTTPException, Query, Request

import structlog

from specdrive.models.requests import RunValidationRequest, UpdateRuleRequest
from specdrive.models.responses import DashboardResponse, RuleDeletedResponse
from specdrive.validators.artifacts import ArtifactSet, latest_by_name
from specdrive.validators.models import ValidationReport, parse_rule

logger = structlog.get_logger()

router = APIRouter(prefix="/validation")


@router.post("/run", response_model=ValidationReport)
async def run_validation(request_body: RunValidationRequest, request: Request):
    """Validate the newest version of every project artifact and write statuses back."""
    state = request.app.state
    artifacts = latest_by_name(await state.orchestrator.artifacts(request_body.project_id))

    report = await state.validation_engine.validate_artifacts(
        request_body.project_id,
        request_body.phase.value,
        ArtifactSet.from_artifacts(artifacts),
    )
    await state.validation_engine.write_back(report, artifacts)
    return report


@router.get("/reports/{project_id}", response_model=list[ValidationReport])
async def get_validation_history(
    project_id: str,
    request: Request,
    limit: int = Query(default=10, ge=1, le=100),
):
    """Reports for a project, newest first."""
    return await request.app.state.validation_engine.get_validation_history(project_id, limit)


@router.get("/reports/report/{report_id}", response_model=ValidationReport)
async def get_validation_report(report_id: str, request: Request):
    report = await request.app.state.validation_engine.get_validation_report(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail=f"Validation report {report_id} not found")
    return report


@router.get("/dashboard/{project_id}", response_model=DashboardResponse)
async def get_validation_dashboard(project_id: str, request: Request):
    return await request.app.state.validation_engine.dashboard(project_id)


# ─── Rules ───


@router.get("/rules")
async def list_rules(request: Request):
    return request.app.state.validation_engine.get_rules()


@router.post("/rules", status_code=201)
async def create_rule(request: Request, payload: dict = Body(...)):
    """Register a rule. The `check` field selects the variant; an existing id is replaced."""
    rule = parse_rule(payload)
    engine = request.app.state.validation_engine
    engine.add_rule(rule)
    await engine.report_store.save_rule(rule)
    return rule


@router.patch("/rules/{rule_id}")
async def update_rule(rule_id: str, request_body: UpdateRuleRequest, request: Request):
    engine = request.app.state.validation_engine
    if not engine.set_rule_enabled(rule_id, request_body.enabled):
        raise HTTPException(status_code=404, detail=f"Validation rule {rule_id} not found")

    rule = engine.get_rule(rule_id)
    await engine.report_store.save_rule(rule)
    return rule


@router.delete("/rules/{rule_id}", response_model=RuleDeletedResponse)
async def delete_rule(rule_id: str, request: Request):
    engine = request.app.state.validation_engine
    if not engine.remove_rule(rule_id):
        raise HTTPException(status_code=404, detail=f"Validation rule {rule_id} not found")

    await engine.report_store.delete_rule(rule_id)
    logger.info("validation_rule_deleted", rule_id=rule_id)
    return RuleDeletedResponse(rule_id=rule_id)
