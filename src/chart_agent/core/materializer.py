from typing import Any, Optional
from chart_agent.models import ChartSpec, SeriesBundle, Trace
from chart_agent.utils.logger import get_logger

logger = get_logger(__name__)

CONNECTED_TYPES = ("line", "area")


def _column(bundle: SeriesBundle, key: Optional[str]) -> list:
    if key is None:
        return []
    return list(bundle.get(key, []))


def _x_key(bundle: SeriesBundle, spec: ChartSpec) -> Optional[str]:
    if spec.x:
        return spec.x
    return next(iter(bundle), None)


def _y_key(bundle: SeriesBundle, spec: ChartSpec, x_key: Optional[str]) -> Optional[str]:
    if spec.type == "histogram":
        key = spec.y or x_key
        # a histogram bundle holds a single column; use it when the x field is absent
        if key not in bundle and len(bundle) == 1:
            return next(iter(bundle))
        return key
    if spec.type == "pie":
        return spec.y or "count"
    if spec.agg == "count":
        return "count"
    if spec.y:
        return spec.y
    # First value column after the x axis (and the color column, when grouped)
    skip = {x_key, spec.color}
    return next((k for k in bundle if k not in skip), None)


def _mode(kind: str) -> Optional[str]:
    if kind in CONNECTED_TYPES:
        return "lines+markers"
    if kind == "scatter":
        return "markers"
    return None


def _group_indices(values: list) -> dict:
    """Row indices per distinct value, keyed in first-seen order."""
    groups = {}
    for i, v in enumerate(values):
        groups.setdefault(v, []).append(i)
    return groups


def materialize(bundle: SeriesBundle, spec: ChartSpec) -> list[Trace]:
    """
    Turn a SeriesBundle into renderable traces.

    Missing keys degrade to empty sequences. Line/area/bar/scatter charts
    with a color column present in the bundle get one trace per distinct
    color value, named after that value.
    """
    bundle = bundle or {}
    x_key = _x_key(bundle, spec)
    y_key = _y_key(bundle, spec, x_key)
    xs = _column(bundle, x_key)
    ys = _column(bundle, y_key)

    if spec.type == "histogram":
        return [Trace(kind="histogram", x=ys)]
    if spec.type == "pie":
        return [Trace(kind="pie", x=xs, y=ys)]
    if spec.type == "box":
        return [Trace(kind="box", x=xs, y=ys)]

    mode = _mode(spec.type)
    color_values = bundle.get(spec.color) if spec.color else None
    if not color_values:
        return [Trace(kind=spec.type, x=xs, y=ys, mode=mode)]

    traces = []
    for group, idxs in _group_indices(color_values).items():
        traces.append(Trace(
            kind=spec.type,
            x=[_at(xs, i) for i in idxs],
            y=[_at(ys, i) for i in idxs],
            name=str(group),
            mode=mode,
        ))
    logger.info(f"Materialized {len(traces)} trace(s) grouped by '{spec.color}'")
    return traces


def _at(values: list, i: int) -> Any:
    return values[i] if i < len(values) else None
