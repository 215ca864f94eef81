"""
karmabot.services.chart_service — History Chart Rendering
==========================================================

Turns a member's history log into a PNG line chart.  Draws on a standalone
:class:`~matplotlib.figure.Figure` (Agg canvas) rather than pyplot, since
it runs on ``run_db`` worker threads, and returns bytes so the caller
decides where the image goes.
"""

from __future__ import annotations

import io
import logging
from datetime import UTC, datetime

from matplotlib.figure import Figure
from matplotlib.ticker import FuncFormatter, MaxNLocator

from karmabot.constants import MIN_CHART_POINTS
from karmabot.database.store import Measure

logger = logging.getLogger(__name__)

LABEL_FORMAT = "%d/%m %H:%M"


def render_history_chart(points: list[Measure], title: str = "") -> bytes:
    """Render *points* as a PNG and return the image bytes.

    Samples are plotted by position rather than by time so bursts of grants
    stay readable; the x labels show each sample's UTC time.

    Raises
    ------
    ValueError
        If fewer than two points are given.
    """
    if len(points) < MIN_CHART_POINTS:
        raise ValueError(f"Need at least {MIN_CHART_POINTS} points, got {len(points)}")

    karma = [p.karma for p in points]
    labels = [
        datetime.fromtimestamp(p.timestamp, UTC).strftime(LABEL_FORMAT) for p in points
    ]

    def _label(x: float, _pos: int) -> str:
        index = int(round(x))
        return labels[index] if 0 <= index < len(labels) else ""

    fig = Figure(figsize=(6.4, 4.8))
    ax = fig.subplots()
    ax.plot(range(len(points)), karma, color="#1f77b4")
    ax.set_xlim(0, len(points) - 1)
    ax.set_ylim(min(karma) - 1, max(karma) + 1)
    ax.xaxis.set_major_locator(MaxNLocator(nbins=6, integer=True))
    ax.xaxis.set_major_formatter(FuncFormatter(_label))
    ax.yaxis.set_major_locator(MaxNLocator(integer=True))
    ax.set_xlabel("time")
    ax.set_ylabel("karma")
    if title:
        ax.set_title(title)
    ax.grid(True, alpha=0.3)
    fig.autofmt_xdate()

    buffer = io.BytesIO()
    fig.savefig(buffer, format="png", bbox_inches="tight")
    logger.debug("Rendered chart with %d points (%d bytes)", len(points), buffer.tell())
    return buffer.getvalue()
