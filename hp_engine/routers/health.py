"""
Health check endpoint.
"""
from fastapi import APIRouter, Depends
from datetime import datetime
import logging

from hp_engine.config import settings
from hp_engine.dependencies.dashboard import get_dashboard
from hp_engine.models.schemas import HealthCheckResponse
from hp_engine.services.dashboard import Dashboard

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=HealthCheckResponse)
async def health_check(dashboard: Dashboard = Depends(get_dashboard)):
    """
    Health check endpoint to verify service status.

    Returns:
        HealthCheckResponse with the configured model and credential status
    """
    state = dashboard.state
    credential_status = "configured" if state.credential else "missing"
    overall_status = "healthy" if state.credential else "degraded"

    return HealthCheckResponse(
        status=overall_status,
        model=settings.GEMINI_MODEL,
        credential=credential_status,
        timestamp=datetime.utcnow(),
        details={
            "analyzing": str(state.is_analyzing).lower(),
            "exporting": str(state.is_exporting).lower(),
        },
    )
