from chart_agent.core.interpreter import interpret
from chart_agent.core.aggregation import resolve_spec, summarize
from chart_agent.core.materializer import materialize
from chart_agent.core.visualization import generate_plotly_json
from chart_agent.models import ChartResult, ChartSpec, Column, DatasetSnapshot
from chart_agent.utils.logger import get_logger

logger = get_logger(__name__)


def build_spec(prompt: str, columns: list[Column]) -> ChartSpec:
    """Stateless prompt -> ChartSpec step, served on its own by the API."""
    return interpret(prompt, columns)


def generate_chart(snapshot: DatasetSnapshot, prompt: str, render: bool = True) -> ChartResult:
    """
    Run the whole prompt-to-chart pipeline against one dataset snapshot.

    Args:
        snapshot: The dataset to chart. Callers fetch it once so a concurrent
            upload cannot change the data halfway through.
        prompt: Free-text chart request.
        render: When False, skip building the Plotly figure.

    Returns:
        ChartResult with the resolved spec, the traces and the figure JSON.
    """
    logger.info(f"Generating chart for '{prompt[:60]}' on {snapshot.filename}")

    # 1. Prompt -> intent
    spec = interpret(prompt, snapshot.columns)

    # 2. Point prompt fields at real column names where possible
    spec = resolve_spec(snapshot, spec)

    # 3. Dataset -> series
    bundle = summarize(snapshot, spec)

    # 4. Series -> traces
    traces = materialize(bundle, spec)

    # 5. Traces -> Plotly JSON
    figure = generate_plotly_json(traces, spec) if render else None

    return ChartResult(spec=spec, traces=traces, figure=figure)
