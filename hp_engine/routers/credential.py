"""
API key endpoints.

GET /  : whether a key is stored (masked hint only).
PUT /  : save a new key in memory and in the durable store.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from hp_engine.dependencies.dashboard import get_dashboard
from hp_engine.models.schemas import CredentialStatusResponse, CredentialUpdateRequest
from hp_engine.services.dashboard import Dashboard
from hp_engine.utils.helpers import mask_secret

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=CredentialStatusResponse)
async def get_credential(
    dashboard: Dashboard = Depends(get_dashboard),
) -> CredentialStatusResponse:
    credential = dashboard.state.credential
    return CredentialStatusResponse(configured=bool(credential), hint=mask_secret(credential))


@router.put("/", response_model=CredentialStatusResponse)
async def save_credential(
    body: CredentialUpdateRequest,
    dashboard: Dashboard = Depends(get_dashboard),
) -> CredentialStatusResponse:
    """Store a new API key; it is reused on the next start."""
    await dashboard.save_credential(body.api_key)
    credential = dashboard.state.credential
    return CredentialStatusResponse(configured=True, hint=mask_secret(credential))
