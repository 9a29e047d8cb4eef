import pandas as pd
from chart_agent.core.aggregation import summarize
from chart_agent.core.materializer import materialize
from chart_agent.models import ChartSpec

# --- Key resolution ---

def test_scenario_single_trace_uses_second_key():
    bundle = {"region": ["east", "west"], "revenue": [15, 20]}
    spec = ChartSpec(type="bar", agg="sum", x="region", title="Total revenue by region")
    traces = materialize(bundle, spec)
    assert len(traces) == 1
    assert traces[0].kind == "bar"
    assert traces[0].x == ["east", "west"]
    assert traces[0].y == [15, 20]
    assert traces[0].name is None

def test_count_agg_reads_count_column():
    bundle = {"status": ["open", "closed"], "count": [3, 4]}
    traces = materialize(bundle, ChartSpec(x="status", agg="count"))
    assert traces[0].y == [3, 4]

def test_x_defaults_to_first_key():
    bundle = {"count": [12]}
    traces = materialize(bundle, ChartSpec(title=""))
    assert traces[0].x == [12]
    assert traces[0].y == []

def test_missing_keys_degrade_to_empty():
    traces = materialize({"a": [1, 2]}, ChartSpec(x="nope", y="nada"))
    assert len(traces) == 1
    assert traces[0].x == [] and traces[0].y == []

def test_empty_bundle():
    traces = materialize({}, ChartSpec(type="line"))
    assert [(t.x, t.y) for t in traces] == [([], [])]

# --- Per-type traces ---

def test_histogram_trace():
    bundle = {"price": [1.5, 3.0, 2.0]}
    traces = materialize(bundle, ChartSpec(type="histogram"))
    assert len(traces) == 1
    assert traces[0].kind == "histogram"
    assert traces[0].x == [1.5, 3.0, 2.0]

def test_pie_labels_and_values():
    bundle = {"segment": ["retail", "online"], "count": [2, 3]}
    traces = materialize(bundle, ChartSpec(type="pie", x="segment"))
    assert traces[0].kind == "pie"
    assert traces[0].x == ["retail", "online"]
    assert traces[0].y == [2, 3]

def test_box_trace():
    bundle = {"team": ["a", "b", "a"], "salary": [1, 2, 3]}
    traces = materialize(bundle, ChartSpec(type="box", x="team", y="salary", color="team"))
    assert len(traces) == 1
    assert traces[0].x == ["a", "b", "a"] and traces[0].y == [1, 2, 3]

def test_line_and_area_are_connected():
    bundle = {"month": ["jan", "feb"], "v": [1, 2]}
    assert materialize(bundle, ChartSpec(type="line", x="month"))[0].mode == "lines+markers"
    assert materialize(bundle, ChartSpec(type="area", x="month"))[0].mode == "lines+markers"
    assert materialize(bundle, ChartSpec(type="scatter", x="month"))[0].mode == "markers"
    assert materialize(bundle, ChartSpec(type="bar", x="month"))[0].mode is None

# --- Color grouping ---

def test_one_trace_per_color_value():
    bundle = {
        "region": ["east", "east", "west"],
        "segment": ["a", "b", "a"],
        "revenue": [1, 2, 3],
    }
    spec = ChartSpec(type="bar", x="region", color="segment")
    traces = materialize(bundle, spec)
    by_name = {t.name: (t.x, t.y) for t in traces}
    assert by_name == {"a": (["east", "west"], [1, 3]), "b": (["east"], [2])}
    assert [t.name for t in traces] == ["a", "b"]

def test_color_names_are_stringified():
    bundle = {"x": [1, 2, 3], "flag": [True, False, True], "y": [4, 5, 6]}
    traces = materialize(bundle, ChartSpec(type="scatter", x="x", y="y", color="flag"))
    assert sorted(t.name for t in traces) == ["False", "True"]

def test_absent_color_column_means_single_trace():
    bundle = {"x": [1, 2], "y": [3, 4]}
    traces = materialize(bundle, ChartSpec(type="line", x="x", y="y", color="nope"))
    assert len(traces) == 1 and traces[0].name is None

# --- End to end with the aggregation engine ---

def test_materialize_summarize_is_idempotent():
    df = pd.DataFrame({
        "region": ["east", "west", "east", "south"],
        "segment": ["a", "b", "b", "a"],
        "revenue": [10, 20, 5, 1],
    })
    spec = ChartSpec(type="line", x="region", color="segment", y="revenue", agg="mean")
    first = materialize(summarize(df, spec), spec)
    second = materialize(summarize(df, spec), spec)
    assert [(t.name, t.x, t.y) for t in first] == [(t.name, t.x, t.y) for t in second]

def test_grouped_color_after_count():
    df = pd.DataFrame({"region": ["e", "w", "e"], "segment": ["a", "a", "b"]})
    spec = ChartSpec(type="bar", x="region", color="segment", agg="count")
    traces = materialize(summarize(df, spec), spec)
    assert {t.name: (t.x, t.y) for t in traces} == {"a": (["e", "w"], [1, 1]), "b": (["e"], [1])}

def test_histogram_with_absent_x_uses_only_column():
    bundle = {"price": [1.0, 2.0, 2.5]}
    traces = materialize(bundle, ChartSpec(type="histogram", x="region"))
    assert traces[0].x == [1.0, 2.0, 2.5]

def test_color_groups_interleaved_and_missing():
    bundle = {"x": [1, 2, 3, 4, 5], "c": ["b", "a", "b", None, "a"], "y": [10, 20, 30, 40, 50]}
    traces = materialize(bundle, ChartSpec(type="scatter", x="x", y="y", color="c"))
    assert [(t.name, t.x, t.y) for t in traces] == [
        ("b", [1, 3], [10, 30]),
        ("a", [2, 5], [20, 50]),
        ("None", [4], [40]),
    ]
