"""
aggregation.py
─────────────────────────────────────────────────────────────────────────────
Reduces the loaded dataset to the few aligned series a chart needs.

  histogram        → {y: non-missing values}
  box              → raw rows of the {x, y} columns (or every column)
  y + reduction    → one row per [x, color] group, reduced y
  otherwise        → one row per [x, color] group, row "count"

Field names arrive straight from the prompt. Anything that does not resolve
to a column is treated as unset, so a bad field name produces a degenerate
bundle instead of an exception.
─────────────────────────────────────────────────────────────────────────────
"""

import re
import numpy as np
import pandas as pd
from typing import Any, Optional, Union
from chart_agent.core.ingestion import unique_names
from chart_agent.models import ChartSpec, DatasetSnapshot, SeriesBundle
from chart_agent.utils.logger import get_logger

logger = get_logger(__name__)

UNGROUPED_TYPES = ("histogram", "box")
COUNT_COLUMN = "count"

_REDUCERS = {
    # min_count keeps an all-missing group missing instead of summing to 0
    "sum":    lambda s: s.sum(min_count=1),
    "mean":   lambda s: s.mean(),
    "median": lambda s: s.median(),
    "max":    lambda s: s.max(),
    "min":    lambda s: s.min(),
}


# ── field resolution ──────────────────────────────────────────────────────────
def _normalize(name: str) -> str:
    return re.sub(r"[\s\-]+", "_", name.strip().lower())


def resolve_field(df: pd.DataFrame, name: Optional[str]) -> Optional[str]:
    """Map a prompt field to a real column name, or None when nothing matches."""
    if not name:
        return None
    columns = [str(c) for c in df.columns]
    if name in columns:
        return name
    lowered = name.strip().lower()
    for col in columns:
        if col.lower() == lowered:
            return col
    normalized = _normalize(name)
    for col in columns:
        if _normalize(col) == normalized:
            return col
    logger.debug(f"Field '{name}' does not match any column")
    return None


def resolve_spec(dataset: Union[DatasetSnapshot, pd.DataFrame], spec: ChartSpec) -> ChartSpec:
    """
    Rewrite x/y/color to canonical column names where they resolve.
    Unresolved names are kept verbatim so downstream lookups stay lenient.
    """
    df = _frame(dataset)
    updates = {}
    for field in ("x", "y", "color"):
        raw = getattr(spec, field)
        resolved = resolve_field(df, raw)
        if resolved and resolved != raw:
            updates[field] = resolved
    return spec.model_copy(update=updates) if updates else spec


def _frame(dataset: Union[DatasetSnapshot, pd.DataFrame]) -> pd.DataFrame:
    df = dataset.dataframe if isinstance(dataset, DatasetSnapshot) else dataset
    if df is None:
        return df
    labels = [str(c) for c in df.columns]
    names = unique_names(labels)
    if names != list(df.columns):
        # set_axis returns a relabelled frame and leaves the caller's data untouched
        df = df.set_axis(names, axis=1)
    return df


def numeric_columns(df: pd.DataFrame) -> list:
    return [
        c for c in df.columns
        if pd.api.types.is_numeric_dtype(df[c]) and not pd.api.types.is_bool_dtype(df[c])
    ]


# ── value coercion ────────────────────────────────────────────────────────────
def to_scalar(value: Any) -> Any:
    """Convert numpy/pandas scalars into plain JSON-friendly Python values."""
    if value is None:
        return None
    if isinstance(value, (pd.Timestamp, np.datetime64)):
        return None if pd.isna(value) else pd.Timestamp(value).isoformat()
    if isinstance(value, pd.Timedelta):
        return None if pd.isna(value) else str(value)
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and np.isnan(value):
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def _frame_to_bundle(frame: pd.DataFrame) -> SeriesBundle:
    return {str(col): [to_scalar(v) for v in frame[col].tolist()] for col in frame.columns}


def _numeric(series: pd.Series) -> pd.Series:
    if pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series):
        return series
    return pd.to_numeric(series, errors="coerce")


# ── aggregation strategies ────────────────────────────────────────────────────
def _reduce_grouped(df: pd.DataFrame, keys: list, y: str, agg: str) -> pd.DataFrame:
    reducer = _REDUCERS[agg]
    measure = df[y]
    if agg in ("sum", "mean", "median"):
        measure = _numeric(measure)
    grouped = measure.groupby([df[k] for k in keys], sort=False, dropna=False)
    try:
        reduced = reducer(grouped)
    except (TypeError, ValueError) as e:
        logger.warning(f"Reduction '{agg}' failed on '{y}' ({e}); retrying on numeric values")
        reduced = reducer(_numeric(measure).groupby([df[k] for k in keys], sort=False, dropna=False))

    out = reduced.index.to_frame(index=False)
    out.columns = keys
    out[y] = reduced.to_numpy()
    return out


def _reduce_whole(df: pd.DataFrame, y: str, agg: str) -> pd.DataFrame:
    reducer = _REDUCERS[agg]
    measure = df[y]
    if agg in ("sum", "mean", "median"):
        measure = _numeric(measure)
    try:
        value = reducer(measure)
    except (TypeError, ValueError) as e:
        logger.warning(f"Reduction '{agg}' failed on '{y}' ({e}); retrying on numeric values")
        value = reducer(_numeric(measure))
    return pd.DataFrame({y: [value]})


def _count_rows(df: pd.DataFrame, keys: list) -> SeriesBundle:
    if not keys:
        return {COUNT_COLUMN: [int(len(df))]}
    sizes = df.groupby(keys, sort=False, dropna=False).size()
    out = sizes.index.to_frame(index=False)
    out.columns = keys
    bundle = _frame_to_bundle(out)
    bundle[COUNT_COLUMN] = [int(n) for n in sizes.to_numpy()]
    return bundle


def _grouping_keys(x: Optional[str], color: Optional[str]) -> list:
    if x and color and x != color:
        return [x, color]
    if x:
        return [x]
    # color alone never groups, mirroring "by [x, color] / by [x] / whole dataset"
    return []


# ── public entry point ────────────────────────────────────────────────────────
def summarize(dataset: Union[DatasetSnapshot, pd.DataFrame], spec: ChartSpec) -> SeriesBundle:
    """
    Produce the SeriesBundle for `spec` from the dataset.

    Never raises on field names that are missing from the dataset and never
    mutates the dataset. An empty dataset yields an empty bundle.
    """
    df = _frame(dataset)
    if df is None or df.empty:
        logger.info("Dataset is empty - returning empty bundle.")
        return {}

    x = resolve_field(df, spec.x)
    y = resolve_field(df, spec.y)
    color = resolve_field(df, spec.color)
    agg = spec.agg
    keys = _grouping_keys(x, color)

    if y is None and spec.type in UNGROUPED_TYPES:
        nums = numeric_columns(df)
        y = nums[0] if nums else None
        logger.info(f"No measure given for {spec.type}; using first numeric column: {y}")
    elif y is None and agg != "count" and spec.type != "pie" and x is not None:
        candidates = [c for c in numeric_columns(df) if c not in keys]
        y = candidates[0] if candidates else None
        logger.info(f"No measure given; inferred '{y}' from numeric columns")

    logger.info(f"Summarizing type={spec.type} agg={agg} keys={keys} measure={y}")

    if spec.type == "histogram":
        if y is None:
            return {}
        return {y: [to_scalar(v) for v in df[y].dropna().tolist()]}

    if spec.type == "box":
        cols = list(dict.fromkeys(c for c in (x, y) if c))
        return _frame_to_bundle(df[cols] if cols else df)

    if y is not None and agg != "count":
        if keys:
            return _frame_to_bundle(_reduce_grouped(df, keys, y, agg))
        return _frame_to_bundle(_reduce_whole(df, y, agg))

    return _count_rows(df, keys)
