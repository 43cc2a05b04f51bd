"""
Analysis endpoints.

POST /            : run the remote analysis on the current corpus.
GET  /            : dashboard view: cards, narrative, chart data, flags, error.
GET  /segments    : annotation table, optionally filtered by HP category.
GET  /chart.png   : HP type frequency chart as PNG.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response

from hp_engine.dependencies.dashboard import get_dashboard, require_idle_analysis
from hp_engine.models.schemas import (
    CategoryCount,
    DashboardResponse,
    SegmentListResponse,
    SummaryCardsResponse,
)
from hp_engine.services.dashboard import ALL_CATEGORIES, Dashboard
from hp_engine.utils.helpers import format_ratio_percentage

logger = logging.getLogger(__name__)

router = APIRouter()


def _dashboard_response(dashboard: Dashboard) -> DashboardResponse:
    state = dashboard.state
    analysis = state.analysis

    cards: Optional[SummaryCardsResponse] = None
    if analysis is not None:
        summary = analysis.summary
        cards = SummaryCardsResponse(
            total_sentences=summary.total_sentences,
            hp_count=summary.hp_count,
            tense_switch_ratio=summary.tense_switch_ratio,
            tense_switch_percentage=format_ratio_percentage(
                summary.tense_switch_ratio, summary.total_sentences
            ),
        )

    return DashboardResponse(
        is_analyzing=state.is_analyzing,
        is_exporting=state.is_exporting,
        error=state.last_error,
        analysis=analysis,
        cards=cards,
        chart=[
            CategoryCount(name=name, count=count)
            for name, count in dashboard.histogram().items()
        ],
        categories=dashboard.category_options(),
    )


@router.post("/", response_model=DashboardResponse)
async def submit_analysis(
    dashboard: Dashboard = Depends(require_idle_analysis),
) -> DashboardResponse:
    """
    Send the current corpus to the model and store the result.

    Errors (missing key, empty text, model failure) are returned as JSON with
    the matching status code; the previous result stays available.
    """
    await dashboard.submit_analysis()
    return _dashboard_response(dashboard)


@router.get("/", response_model=DashboardResponse)
async def get_dashboard_view(
    dashboard: Dashboard = Depends(get_dashboard),
) -> DashboardResponse:
    return _dashboard_response(dashboard)


@router.get("/segments", response_model=SegmentListResponse)
async def list_segments(
    category: str = Query(ALL_CATEGORIES, description="HP category, or 'All'"),
    dashboard: Dashboard = Depends(get_dashboard),
) -> SegmentListResponse:
    segments = dashboard.filtered_segments(category)
    return SegmentListResponse(category=category, total=len(segments), segments=segments)


@router.get("/chart.png", response_class=Response)
async def get_chart(dashboard: Dashboard = Depends(get_dashboard)) -> Response:
    if dashboard.state.analysis is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No analysis to chart yet.",
        )
    png = dashboard.chart_png()
    if png is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Chart could not be rendered.",
        )
    return Response(content=png, media_type="image/png")
