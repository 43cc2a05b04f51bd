"""
Report export endpoint.

POST /export : build the Word report for the current analysis and return it
               as a download with a fixed file name.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from hp_engine.config import settings
from hp_engine.dependencies.dashboard import require_idle_export
from hp_engine.services.dashboard import Dashboard
from hp_engine.services.report_builder import DOCX_MEDIA_TYPE

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/export", response_class=Response)
async def export_report(dashboard: Dashboard = Depends(require_idle_export)) -> Response:
    """Return the complete .docx; nothing is sent if assembly fails."""
    blob = await dashboard.export_report()
    logger.info("Exported %s (%d bytes)", settings.REPORT_FILENAME, len(blob))
    return Response(
        content=blob,
        media_type=DOCX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{settings.REPORT_FILENAME}"'
        },
    )
