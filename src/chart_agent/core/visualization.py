"""
visualization.py
─────────────────────────────────────────────────────────────────────────────
Draws materialized traces with Plotly.

Trace kind → Plotly trace
  histogram → Histogram
  pie       → Pie (donut, labels = x, values = y)
  box       → Box
  bar       → Bar
  scatter   → Scatter (markers)
  line      → Scatter (lines+markers)
  area      → Scatter (lines+markers, filled to zero)
─────────────────────────────────────────────────────────────────────────────
"""

import plotly.graph_objects as go
from typing import Optional
from chart_agent.config import settings
from chart_agent.models import ChartSpec, Trace
from chart_agent.utils.logger import get_logger

logger = get_logger(__name__)

# ── colour palette (dark-theme friendly) ─────────────────────────────────────
CLR_HISTOGRAM = "#60a5fa"
CLR_BOX       = "#a78bfa"
CLR_BG        = "#0a0a0a"
FONT_COLOR    = "#FFFFFF"

LAYOUT_BASE = dict(
    template     ="plotly_dark",
    paper_bgcolor=CLR_BG,
    plot_bgcolor =CLR_BG,
    font         =dict(color=FONT_COLOR),
    margin       =dict(t=56, r=20, b=56, l=56),
    legend       =dict(orientation="h", x=0, y=1.1),
)


def _to_plotly(trace: Trace):
    if trace.kind == "histogram":
        return go.Histogram(x=trace.x, name=trace.name, marker=dict(color=CLR_HISTOGRAM))
    if trace.kind == "pie":
        return go.Pie(labels=trace.x, values=trace.y, name=trace.name, hole=0.4)
    if trace.kind == "box":
        return go.Box(x=trace.x or None, y=trace.y, name=trace.name, marker=dict(color=CLR_BOX))
    if trace.kind == "bar":
        return go.Bar(x=trace.x, y=trace.y, name=trace.name)
    # line / area / scatter share the scatter trace type
    return go.Scatter(
        x=trace.x,
        y=trace.y,
        name=trace.name,
        mode=trace.mode or "markers",
        fill="tozeroy" if trace.kind == "area" else None,
    )


def build_figure(traces: list[Trace], spec: ChartSpec) -> go.Figure:
    fig = go.Figure()
    for trace in traces:
        fig.add_trace(_to_plotly(trace))
    fig.update_layout(**LAYOUT_BASE, title=spec.title or settings.DEFAULT_CHART_TITLE)
    return fig


# ── PUBLIC ENTRY POINT ────────────────────────────────────────────────────────
def generate_plotly_json(traces: list[Trace], spec: ChartSpec) -> Optional[str]:
    """
    Render the traces into a Plotly figure and return its JSON, or None
    when Plotly rejects the data.
    """
    logger.info(f"Rendering {len(traces)} {spec.type} trace(s)")
    try:
        return build_figure(traces, spec).to_json()
    except Exception as e:
        logger.error(f"Visualization generation failed: {e}", exc_info=True)
        return None
