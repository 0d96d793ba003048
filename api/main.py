"""
Workload Orchestrator - Main FastAPI Application.

REST API layer for submitting workloads and pipelines to the job
substrate and monitoring their jobs.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import time

from api.dependencies import get_job_substrate, get_settings, get_workload_service
from api.routes import health, workloads
from core.infrastructure.logging import configure_logging


# Setup logging
configure_logging(get_settings().logging.level)
logger = logging.getLogger(__name__)


# =============================================================================
# CREATE FASTAPI APP
# =============================================================================

app = FastAPI(
    title="Workload Orchestrator API",
    description="""
    Orchestration of external workload executables through a job queue.

    Features:
    - Immediate, scheduled and recurring workloads
    - Sequential pipelines with delays between steps
    - Job status and deletion
    - Workload catalogue
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# =============================================================================
# CORS MIDDLEWARE
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


# =============================================================================
# REQUEST LOGGING MIDDLEWARE
# =============================================================================

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests with timing."""
    start_time = time.time()

    logger.info(f"→ {request.method} {request.url.path}")

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"← {request.method} {request.url.path} "
        f"[{response.status_code}] ({duration:.3f}s)"
    )

    return response


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests as 400."""
    logger.warning(f"Invalid request on {request.url.path}: {exc.errors()}")

    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request",
            "detail": jsonable_errors(exc),
            "path": request.url.path,
        },
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle domain validation errors raised outside the routes."""
    logger.warning(f"Validation error on {request.url.path}: {exc}")

    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "detail": str(exc), "path": request.url.path},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all uncaught exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc),
            "path": request.url.path,
        },
    )


def jsonable_errors(exc: RequestValidationError):
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


# =============================================================================
# STARTUP/SHUTDOWN EVENTS
# =============================================================================

@app.on_event("startup")
async def startup_event():
    """Register job handlers and start the job worker."""
    logger.info("🚀 Workload Orchestrator API starting up...")
    get_workload_service()
    await get_job_substrate().start_worker()
    logger.info(f"📂 Executables directory: {get_settings().workload_execution.executables_dir}")
    logger.info("📚 Swagger UI available at: /docs")


@app.on_event("shutdown")
async def shutdown_event():
    """Stop the job worker."""
    await get_job_substrate().stop_worker()
    logger.info("👋 Workload Orchestrator API shutting down...")


# =============================================================================
# INCLUDE ROUTERS
# =============================================================================

app.include_router(
    health.router,
    tags=["Health"]
)

app.include_router(
    workloads.router,
    prefix="/api/v1/workloads",
    tags=["Workloads"]
)


# =============================================================================
# ROOT ENDPOINT
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """API root endpoint."""
    return {
        "message": "Workload Orchestrator API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }
