import io
import pytest
import pandas as pd
from chart_agent.core.ingestion import ingest_file, build_preview, column_dtype, unique_names
from chart_agent.core.pipeline import generate_chart
from chart_agent.config import settings
from chart_agent.utils.exceptions import FileProcessingError

# --- Tests for CSV parsing ---

def test_ingest_valid_csv():
    """Test that a valid CSV is parsed correctly."""
    csv_content = "A,B\n1,2\n3,4"
    snapshot = ingest_file(csv_content.encode('utf-8'), "test.csv")
    assert snapshot.filename == "test.csv"
    assert snapshot.dataframe.shape == (2, 2)
    assert [c.name for c in snapshot.columns] == ["A", "B"]
    assert [c.dtype for c in snapshot.columns] == ["int", "int"]

def test_ingest_empty_csv():
    """Test that an empty CSV raises an error."""
    with pytest.raises(FileProcessingError):
        ingest_file(b"", "empty.csv")

def test_ingest_semicolon_csv():
    """Semicolon-delimited exports are re-read with ';'."""
    csv_content = "region;revenue\neast;10\nwest;20"
    snapshot = ingest_file(csv_content.encode('utf-8'), "eu.csv")
    assert list(snapshot.dataframe.columns) == ["region", "revenue"]
    assert snapshot.dataframe["revenue"].tolist() == [10, 20]

def test_ingest_strips_column_names():
    csv_content = " region , revenue \neast,1.5\nwest,2.5"
    snapshot = ingest_file(csv_content.encode('utf-8'), "spaces.csv")
    assert [c.name for c in snapshot.columns] == ["region", "revenue"]
    assert [c.dtype for c in snapshot.columns] == ["string", "float"]

def test_ingest_detects_dates():
    csv_content = "day,sales\n2024-01-05,3\n2024-02-05,4"
    snapshot = ingest_file(csv_content.encode('utf-8'), "dates.csv")
    dtypes = {c.name: c.dtype for c in snapshot.columns}
    assert dtypes["day"] == "datetime"

def test_ingest_rejects_oversized_file(monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 0)
    with pytest.raises(FileProcessingError, match="limit"):
        ingest_file(b"A,B\n1,2", "big.csv")

def test_ingest_corrupt_spreadsheet():
    with pytest.raises(FileProcessingError):
        ingest_file(b"definitely not a zip archive", "broken.xlsx")

def test_ingest_excel():
    buffer = io.BytesIO()
    pd.DataFrame({"product": ["a", "b"], "qty": [1, 2]}).to_excel(buffer, index=False)
    snapshot = ingest_file(buffer.getvalue(), "Sales.XLSX")
    assert snapshot.dataframe.shape == (2, 2)
    assert {c.name: c.dtype for c in snapshot.columns} == {"product": "string", "qty": "int"}

# --- Tests for preview ---

def test_preview_stringifies_and_blanks_missing():
    csv_content = "a,b\n1,\n2,x"
    snapshot = ingest_file(csv_content.encode('utf-8'), "gaps.csv")
    assert snapshot.preview == [["1", ""], ["2", "x"]]

def test_preview_limited_to_configured_rows():
    df = pd.DataFrame({"n": range(30)})
    assert len(build_preview(df)) == settings.PREVIEW_ROWS
    assert build_preview(df, rows=3) == [["0"], ["1"], ["2"]]

def test_preview_does_not_touch_dataframe():
    csv_content = "a,b\n1,\n2,x"
    snapshot = ingest_file(csv_content.encode('utf-8'), "gaps.csv")
    assert snapshot.dataframe["b"].isna().sum() == 1

# --- Tests for dtype mapping ---

@pytest.mark.parametrize("values, expected", [
    ([1, 2], "int"),
    ([1.5, None], "float"),
    (["x", "y"], "string"),
    ([True, False], "bool"),
    (pd.to_datetime(["2024-01-01", "2024-01-02"]), "datetime"),
    (pd.to_timedelta([1, 2], unit="D"), "other"),
])
def test_column_dtype(values, expected):
    assert column_dtype(pd.Series(values)) == expected

# --- Tests for header clean-up ---

def test_ingest_headers_colliding_after_strip_stay_distinct():
    """Stripped headers that collide are suffixed and stay chartable."""
    snapshot = ingest_file(b"a, a,b\nx,1,2\ny,3,4\n", "dup.csv")
    assert [c.name for c in snapshot.columns] == ["a", "a.1", "b"]
    result = generate_chart(snapshot, "count by a", render=False)
    assert result.traces[0].x == ["x", "y"]
    assert result.traces[0].y == [1, 1]

def test_unique_names():
    assert unique_names(["a", "b"]) == ["a", "b"]
    assert unique_names(["a", "a", "a"]) == ["a", "a.1", "a.2"]
    assert unique_names(["a.1", "a", "a"]) == ["a.1", "a", "a.2"]
