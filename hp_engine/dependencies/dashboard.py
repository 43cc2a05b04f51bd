"""
Dashboard dependencies for FastAPI routes.

The Dashboard is built once in the application lifespan and stored on
``app.state``; routes receive it through ``get_dashboard``.
"""
from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from hp_engine.exceptions import OperationInProgressError
from hp_engine.services.dashboard import Dashboard


async def get_dashboard(request: Request) -> Dashboard:
    """Return the application's Dashboard. Raises 503 before startup completes."""
    dashboard = getattr(request.app.state, "dashboard", None)
    if dashboard is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dashboard is not initialised yet.",
        )
    return dashboard


async def require_idle_analysis(dashboard: Dashboard = Depends(get_dashboard)) -> Dashboard:
    """Refuse a second analysis while one is still running."""
    if dashboard.state.is_analyzing:
        raise OperationInProgressError("An analysis is already running.")
    return dashboard


async def require_idle_export(dashboard: Dashboard = Depends(get_dashboard)) -> Dashboard:
    """Refuse a second export while one is still running."""
    if dashboard.state.is_exporting:
        raise OperationInProgressError("A report export is already running.")
    return dashboard
