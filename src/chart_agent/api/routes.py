from fastapi import FastAPI, UploadFile, File, Request
from fastapi.responses import JSONResponse
from typing import get_args

from chart_agent.config import settings
from chart_agent.utils.exceptions import AppException, InvalidQueryError
from chart_agent.utils.logger import get_logger

# Import core logic
from chart_agent.core.ingestion import ingest_file
from chart_agent.core.pipeline import build_spec, generate_chart
from chart_agent.core.store import DatasetStore
from chart_agent.models import Column, ColumnType, DatasetSnapshot

logger = get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs"
)

# --- In-Memory Session Store ---
store = DatasetStore()

_COLUMN_TYPES = set(get_args(ColumnType))


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    logger.warning(f"{request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def _describe(snapshot: DatasetSnapshot) -> dict:
    return {
        "filename": snapshot.filename,
        "rows": len(snapshot.dataframe),
        "columns": [c.model_dump() for c in snapshot.columns],
        "preview": snapshot.preview,
    }


def _parse_columns(raw) -> list[Column]:
    """Accepts [{"name", "dtype"}] or [[name, dtype]]; unknown dtypes become 'other'."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise InvalidQueryError("'columns' must be a list.")
    columns = []
    for item in raw:
        if isinstance(item, dict):
            name, dtype = item.get("name"), item.get("dtype", item.get("type"))
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            name, dtype = item
        else:
            raise InvalidQueryError(f"Unrecognized column entry: {item!r}")
        if name is None:
            raise InvalidQueryError("Every column needs a name.")
        dtype = dtype if isinstance(dtype, str) and dtype in _COLUMN_TYPES else "other"
        columns.append(Column(name=str(name), dtype=dtype))
    return columns


def _prompt_from(payload: dict) -> str:
    prompt = payload.get("prompt")
    if prompt is None:
        raise InvalidQueryError("Prompt field is required.")
    if not isinstance(prompt, str):
        raise InvalidQueryError("Prompt must be a string.")
    return prompt


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "online", "message": "AI Chart Agent API is running"}


@app.post("/upload")
async def upload_file(file: UploadFile = File(...)):
    """
    Uploads a CSV/Excel file and makes it the active dataset.
    A failed upload leaves the previous dataset in place.
    """
    logger.info(f"Received file upload: {file.filename}")

    content = await file.read()
    snapshot = ingest_file(content, file.filename or "")
    store.set(snapshot)

    return {"message": "File uploaded and processed successfully.", **_describe(snapshot)}


@app.get("/dataset")
async def current_dataset():
    """Schema and preview of the active dataset."""
    return _describe(store.get())


@app.post("/spec")
async def interpret_prompt(payload: dict):
    """
    Turns a prompt into a chart spec. Stateless.
    Expected Payload: {"prompt": "Total revenue by region", "columns": [{"name": "region", "dtype": "string"}]}
    """
    prompt = _prompt_from(payload)
    spec = build_spec(prompt, _parse_columns(payload.get("columns")))
    return {"spec": spec.model_dump()}


@app.post("/chart")
async def generate(payload: dict):
    """
    Runs the full pipeline on the active dataset.
    Expected Payload: {"prompt": "Average price by category"}
    """
    prompt = _prompt_from(payload)
    # Fetch once: a concurrent upload swaps the store, not this snapshot
    snapshot = store.get()
    result = generate_chart(snapshot, prompt)
    return result.model_dump()
