"""SpecDrive — phase orchestration, cross-artifact validation and traceability.

Main FastAPI application with lifespan management, CORS, and global error handling.
"""

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from specdrive.api.router import api_router
from specdrive.config import Settings, get_settings
from specdrive.exceptions import InvalidStateError, ProjectNotFoundError
from specdrive.orchestrator import Orchestrator, SystemClock
from specdrive.services.redis_store import RedisStore
from specdrive.services.report_store import ReportStore
from specdrive.services.store import InMemoryStore, Store
from specdrive.validators import ValidationEngine

# Configure structured logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer() if get_settings().DEBUG else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(get_settings().LOG_LEVEL.upper())
    ),
)

logger = structlog.get_logger()


async def create_store(settings: Settings) -> Store:
    """Build the configured store; an unreachable Redis falls back to memory."""
    if settings.STORE_BACKEND != "redis":
        return InMemoryStore()

    try:
        client = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            encoding="utf-8",
        )
        await client.ping()
        logger.info("redis_connected", url=settings.REDIS_URL)
        return RedisStore(client, prefix=settings.REDIS_KEY_PREFIX)
    except Exception as e:
        logger.error("redis_connection_failed", error=str(e))
        return InMemoryStore()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    settings = get_settings()

    # ── Startup ──
    logger.info("app_starting", debug=settings.DEBUG, store=settings.STORE_BACKEND)

    app.state.store = await create_store(settings)

    app.state.report_store = ReportStore(app.state.store)
    app.state.validation_engine = ValidationEngine(app.state.report_store)
    await app.state.validation_engine.load_rules()

    app.state.orchestrator = Orchestrator(
        app.state.store,
        think_time=settings.THINK_TIME_SECONDS,
        clock=SystemClock(),
    )

    logger.info("app_started")

    yield

    # ── Shutdown ──
    logger.info("app_shutting_down")

    await app.state.orchestrator.shutdown()
    await app.state.store.close()

    logger.info("app_stopped")


# ── Create Application ──

app = FastAPI(
    title="SpecDrive",
    description=(
        "Drives a project through analysis, stack selection, specification, "
        "dependencies and solutioning, synthesizing artifacts per phase and "
        "checking them for cross-document consistency and requirement coverage."
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ── Middleware ──

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Global Exception Handlers ──

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all error handler for unhandled exceptions."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again.",
        },
    )


@app.exception_handler(ProjectNotFoundError)
async def project_not_found_handler(request: Request, exc: ProjectNotFoundError):
    return JSONResponse(
        status_code=404,
        content={"error": "project_not_found", "message": str(exc)},
    )


@app.exception_handler(InvalidStateError)
async def invalid_state_handler(request: Request, exc: InvalidStateError):
    """Operation not allowed in the project's current phase or run state."""
    logger.info("invalid_state", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=409,
        content={"error": "invalid_state", "message": str(exc)},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle validation errors."""
    return JSONResponse(
        status_code=422,
        content={"error": "validation_error", "message": str(exc)},
    )


# ── Routes ──

app.include_router(api_router, prefix="/api/v1")


# ── Root endpoint ──

@app.get("/")
async def root():
    """Root endpoint — API info."""
    return {
        "name": "SpecDrive",
        "version": "1.0.0",
        "description": "Phase orchestration with cross-artifact validation",
        "docs": "/docs",
        "health": "/api/v1/health",
    }


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
