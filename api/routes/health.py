"""
Health check endpoints.

Used for monitoring and load balancer health checks.
"""
from fastapi import APIRouter, Depends
from datetime import datetime, timezone
import platform

from api.dependencies import get_job_substrate


router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns system health status.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "workload-orchestrator",
        "version": "1.0.0",
        "python_version": platform.python_version(),
    }


@router.get("/health/substrate")
async def substrate_info(substrate=Depends(get_job_substrate)):
    """
    Job substrate statistics.

    Returns job counts per state and the number of recurring jobs.
    """
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "statistics": substrate.statistics(),
    }
