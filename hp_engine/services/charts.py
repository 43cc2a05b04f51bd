"""
Historical Present type frequency chart.

``category_histogram`` counts HP categories in first-seen order (``None``
excluded); ``ChartRasterizer`` draws that histogram as a bar chart and
returns it as PNG bytes for the dashboard and the exported report.
"""
from __future__ import annotations

import io
import logging
from typing import Dict, Iterable, Optional

from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.ticker import MaxNLocator

from hp_engine.config import settings
from hp_engine.models.analysis import HPCategory, SegmentAnnotation

logger = logging.getLogger(__name__)

CHART_TITLE = "Historical Present Type Frequency"
BAR_COLORS = ["#4f46e5", "#10b981", "#f59e0b", "#ef4444", "#8b5cf6", "#ec4899"]
GRID_COLOR = "#f1f5f9"
TEXT_MID = "#94a3b8"


def category_histogram(segments: Iterable[SegmentAnnotation]) -> Dict[str, int]:
    """
    Count HP categories across *segments*.

    Keys keep the order in which each category first appears; segments
    categorised as ``None`` are left out.
    """
    counts: Dict[str, int] = {}
    for segment in segments:
        if segment.hp_category == HPCategory.NONE:
            continue
        name = segment.hp_category.value
        counts[name] = counts.get(name, 0) + 1
    return counts


class ChartRasterizer:
    """Renders the HP frequency bar chart to a PNG bitmap."""

    def __init__(
        self,
        scale: Optional[int] = None,
        width: Optional[float] = None,
        height: Optional[float] = None,
    ) -> None:
        self.scale = scale or settings.CHART_SCALE
        self.width = width or settings.CHART_WIDTH_INCHES
        self.height = height or settings.CHART_HEIGHT_INCHES

    def render_and_capture(self, segments: Iterable[SegmentAnnotation]) -> Optional[bytes]:
        """
        Render the chart for *segments* and return it as PNG bytes.

        Returns None when the chart cannot be produced; callers leave the
        chart out of the report instead of failing the export.
        """
        histogram = category_histogram(segments)
        try:
            return self._render(histogram)
        except Exception as exc:
            logger.warning("Chart rendering failed, omitting chart: %s", exc)
            return None

    def _render(self, histogram: Dict[str, int]) -> bytes:
        names = list(histogram.keys())
        counts = list(histogram.values())

        # A standalone Figure keeps no pyplot state, so export threads can render
        fig = Figure(figsize=(self.width, self.height))
        FigureCanvasAgg(fig)
        ax = fig.subplots()
        fig.patch.set_facecolor("white")
        ax.set_facecolor("white")
        ax.set_title(CHART_TITLE, fontsize=11, fontweight="bold", color=TEXT_MID, pad=14)

        if names:
            colors = [BAR_COLORS[i % len(BAR_COLORS)] for i in range(len(names))]
            ax.bar(names, counts, color=colors, width=0.5)

        ax.tick_params(colors=TEXT_MID, labelsize=9, length=0)
        ax.yaxis.set_major_locator(MaxNLocator(integer=True))
        for side in ("top", "right", "left", "bottom"):
            ax.spines[side].set_visible(False)
        ax.yaxis.grid(True, color=GRID_COLOR, linewidth=0.8, linestyle="--")
        ax.set_axisbelow(True)
        fig.tight_layout()

        buf = io.BytesIO()
        fig.savefig(buf, format="png", dpi=100 * self.scale, facecolor="white")
        return buf.getvalue()
