"""
Health Check Routes

FastAPI endpoints for service health and readiness checks.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from stella import __version__
from stella.models.api import HealthResponse, ReadinessResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health() -> HealthResponse:
    """
    Basic liveness check.

    Returns 200 OK whenever the process is serving requests.
    """
    return HealthResponse(status="healthy", version=__version__, timestamp=_now())


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness() -> JSONResponse:
    """
    Readiness check for service dependencies.

    Checks:
    - Database connection answers a trivial query
    - Pipeline is initialized

    Returns:
        200 OK if all checks pass
        503 Service Unavailable if any check fails
    """
    from stella.api.main import app_state

    checks: dict[str, bool] = {}

    try:
        if app_state["connector"] is not None:
            await app_state["connector"].execute("SELECT 1")
            checks["database"] = True
            logger.debug("Database check: OK")
        else:
            checks["database"] = False
            logger.warning("Database check: FAILED (connector not initialized)")
    except Exception as e:
        checks["database"] = False
        logger.warning(f"Database check: FAILED ({e})")

    checks["pipeline"] = app_state["pipeline"] is not None
    if not checks["pipeline"]:
        logger.warning("Pipeline check: FAILED (not initialized)")

    all_ready = all(checks.values())
    response = ReadinessResponse(
        status="ready" if all_ready else "not_ready",
        version=__version__,
        timestamp=_now(),
        checks=checks,
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if all_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=response.model_dump(),
    )
