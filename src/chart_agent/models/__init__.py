from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, List, Literal, Optional
import pandas as pd

ChartType = Literal["bar", "line", "scatter", "histogram", "box", "pie", "area"]
AggFunc = Literal["sum", "mean", "count", "median", "max", "min"]
ColumnType = Literal["int", "float", "string", "datetime", "bool", "other"]

# Column name -> row-aligned list of plain Python scalars (None marks a missing value)
SeriesBundle = Dict[str, List[Any]]


class Column(BaseModel):
    """Represents metadata for a single column."""
    model_config = ConfigDict(frozen=True)

    name: str
    dtype: ColumnType


class ChartSpec(BaseModel):
    """
    Rendering intent derived from a prompt.
    Field names are raw prompt substrings and may not match any column.
    """
    model_config = ConfigDict(frozen=True)

    type: ChartType = "bar"
    x: Optional[str] = None
    y: Optional[str] = None
    color: Optional[str] = None
    agg: AggFunc = "sum"
    title: Optional[str] = None


class Trace(BaseModel):
    """One renderable series. For pie charts x holds labels and y holds values."""
    kind: ChartType
    x: List[Any] = []
    y: List[Any] = []
    name: Optional[str] = None
    mode: Optional[str] = None


class DatasetSnapshot(BaseModel):
    """
    Represents the active dataset in memory.
    Contains the DataFrame, its derived schema and the on-screen preview.
    The dataframe is owned by the snapshot and never mutated after load.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    dataframe: pd.DataFrame
    columns: List[Column]
    preview: List[List[str]] = []
    filename: str


class ChartResult(BaseModel):
    """Everything produced by one "generate chart" request."""
    spec: ChartSpec
    traces: List[Trace]
    figure: Optional[str] = None
