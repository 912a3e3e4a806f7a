"""
Health check endpoints
"""
import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from ..db import check_db_connection
from ..schemas import HealthResponse

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/healthz", response_model=HealthResponse, status_code=status.HTTP_200_OK)
def health_check():
    logger.info("Health check endpoint called service=auth-service")
    return {"status": "ok"}


@router.get("/readyz", status_code=status.HTTP_200_OK)
def readiness_check(request: Request):
    """
    Readiness check: the service is ready when the database answers.

    Returns 503 when the database is unreachable.
    """
    if not check_db_connection(request.app.state.engine):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": "Service not ready", "status": "not_ready", "database": "disconnected"},
        )
    return {"status": "ready", "database": "connected"}
