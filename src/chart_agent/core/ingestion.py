import io
import os
import pandas as pd
from chart_agent.utils.logger import get_logger
from chart_agent.utils.exceptions import FileProcessingError
from chart_agent.models import DatasetSnapshot, Column
from chart_agent.config import settings

logger = get_logger(__name__)

SPREADSHEET_EXTENSIONS = (".xls", ".xlsx")


def column_dtype(series: pd.Series) -> str:
    """Collapse a pandas dtype into the simplified Column.dtype vocabulary."""
    if pd.api.types.is_bool_dtype(series):
        return "bool"
    if pd.api.types.is_integer_dtype(series):
        return "int"
    if pd.api.types.is_float_dtype(series):
        return "float"
    if pd.api.types.is_datetime64_any_dtype(series):
        return "datetime"
    if pd.api.types.is_object_dtype(series) or pd.api.types.is_string_dtype(series):
        return "string"
    return "other"


def unique_names(names: list[str]) -> list[str]:
    """
    Make column names unique the way pandas mangles duplicate headers:
    the second "a" becomes "a.1", the third "a.2".
    """
    taken = set()
    out = []
    for name in names:
        candidate, n = name, 0
        while candidate in taken:
            n += 1
            candidate = f"{name}.{n}"
        taken.add(candidate)
        out.append(candidate)
    return out


def extract_columns(df: pd.DataFrame) -> list[Column]:
    return [Column(name=str(col), dtype=column_dtype(df[col])) for col in df.columns]


def build_preview(df: pd.DataFrame, rows: int | None = None) -> list[list[str]]:
    """
    First rows of the dataset with every cell stringified for on-screen tables.
    Missing values become "". Lossy on purpose, never used for aggregation.
    """
    rows = settings.PREVIEW_ROWS if rows is None else rows
    preview = []
    for record in df.head(rows).itertuples(index=False, name=None):
        preview.append(["" if pd.isna(v) else str(v) for v in record])
    return preview


def _read_spreadsheet(file_content: bytes, ext: str) -> pd.DataFrame:
    engine = "openpyxl" if ext == ".xlsx" else None
    return pd.read_excel(io.BytesIO(file_content), engine=engine)


def _read_delimited(file_content: bytes) -> pd.DataFrame:
    """Read CSV with the default comma, falling back to ';' for European exports."""
    try:
        df = pd.read_csv(io.BytesIO(file_content))
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        logger.warning(f"Comma-separated read failed ({e}); retrying with ';'")
        return pd.read_csv(io.BytesIO(file_content), sep=";")

    # A semicolon file parsed with commas collapses into one wide column
    if len(df.columns) == 1 and ";" in str(df.columns[0]):
        logger.info("Single column header contains ';' - re-reading with ';' delimiter")
        return pd.read_csv(io.BytesIO(file_content), sep=";")
    return df


def _coerce_dates(df: pd.DataFrame) -> pd.DataFrame:
    for col in df.columns:
        series = df[col]
        if not (pd.api.types.is_object_dtype(series) or pd.api.types.is_string_dtype(series)):
            continue
        if series.dropna().empty:
            continue
        try:
            df[col] = pd.to_datetime(series, dayfirst=True)
        except (ValueError, TypeError, OverflowError):
            pass
    return df


def ingest_file(file_content: bytes, filename: str) -> DatasetSnapshot:
    """
    Parse an uploaded CSV/Excel file into an immutable dataset snapshot.

    Raises:
        FileProcessingError: If the file is too large, empty or unreadable.
    """
    logger.info(f"Starting ingestion for file: {filename}")

    try:
        # 1. Validate File Size
        size_mb = len(file_content) / (1024 * 1024)
        if size_mb > settings.MAX_UPLOAD_SIZE_MB:
            raise FileProcessingError(f"File exceeds {settings.MAX_UPLOAD_SIZE_MB}MB limit.")

        # 2. Pick a reader by extension
        ext = os.path.splitext(filename or "")[1].lower()
        if ext in SPREADSHEET_EXTENSIONS:
            logger.info(f"Reading spreadsheet ({ext})")
            df = _read_spreadsheet(file_content, ext)
        else:
            df = _read_delimited(file_content)

        # 3. Basic Validation
        if df.empty:
            raise FileProcessingError("The uploaded file contains no data.")

        # 4. Pre-processing
        df.columns = unique_names([str(c).strip() for c in df.columns])
        df = _coerce_dates(df)

        # 5. Extract Schema
        columns = extract_columns(df)

        logger.info(f"Ingestion successful. Shape: {df.shape}")

        return DatasetSnapshot(
            dataframe=df,
            columns=columns,
            preview=build_preview(df),
            filename=filename,
        )

    except FileProcessingError:
        raise
    except Exception as e:
        logger.error(f"Error during ingestion: {str(e)}")
        raise FileProcessingError(f"Failed to parse {filename}: {str(e)}")
