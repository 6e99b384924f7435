"""Main API router — combines all endpoint routers."""

from fastapi import APIRouter

from specdrive.api.health import router as health_router
from specdrive.api.orchestration import router as orchestration_router
from specdrive.api.traceability import router as traceability_router
from specdrive.api.validation import router as validation_router

api_router = APIRouter()

# Health check
api_router.include_router(health_router, tags=["Health"])

# Phase orchestration, gates and artifacts
api_router.include_router(orchestration_router, tags=["Orchestration"])

# Requirement coverage
api_router.include_router(traceability_router, tags=["Traceability"])

# Cross-artifact validation
api_router.include_router(validation_router, tags=["Validation"])
