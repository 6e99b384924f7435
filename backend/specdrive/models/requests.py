"""API request models."""

from pydantic import BaseModel, Field

from specdrive.models.domain import Phase


class RunValidationRequest(BaseModel):
    """Request to validate a project's current artifact set."""

    project_id: str = Field(..., min_length=1)
    phase: Phase = Field(..., description="Phase label recorded on the report")


class UpdateRuleRequest(BaseModel):
    """Enable or disable a validation rule for subsequent runs."""

    enabled: bool
