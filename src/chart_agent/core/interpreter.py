"""
interpreter.py
─────────────────────────────────────────────────────────────────────────────
Turns a free-text prompt into a ChartSpec without any model call.

Every category is an ordered rule table, evaluated top to bottom over the
prompt; the first rule that matches wins and the categories never override
each other.

  chart type   trend / over time / time series  → line
               histogram / distribution         → histogram
               scatter                          → scatter
               box                              → box
               pie / share                      → pie
               area                             → area
               (nothing)                        → bar
  aggregation  average / mean → mean,  count / number of → count,
               median, max, min,  (nothing) → sum
  fields       "by <x>", "color by <color>", "use <y>"
─────────────────────────────────────────────────────────────────────────────
"""

import re
from typing import Optional, Pattern
from chart_agent.models import ChartSpec, Column
from chart_agent.utils.logger import get_logger

logger = get_logger(__name__)

# ── rule tables ──────────────────────────────────────────────────────────────
TYPE_RULES: list[tuple[Pattern, str]] = [
    (re.compile(r"trend|over time|time series"), "line"),
    (re.compile(r"histogram|distribution"),      "histogram"),
    (re.compile(r"scatter"),                     "scatter"),
    (re.compile(r"box"),                         "box"),
    (re.compile(r"pie|share"),                   "pie"),
    (re.compile(r"area"),                        "area"),
]
DEFAULT_TYPE = "bar"

AGG_RULES: list[tuple[Pattern, str]] = [
    (re.compile(r"average|mean"),     "mean"),
    (re.compile(r"count|number of"),  "count"),
    (re.compile(r"median"),           "median"),
    (re.compile(r"max"),              "max"),
    (re.compile(r"min"),              "min"),
]
DEFAULT_AGG = "sum"

# A field is a run of word characters, spaces and hyphens. The run stops at
# punctuation, end of text, or where the next field keyword starts.
_TOKENS = r"([\w\s-]+?)"
_STOP = r"(?=\s+(?:colou?r\s+)?by\b|\s+use\b|[^\w\s-]|$)"

FIELD_RULES: dict[str, Pattern] = {
    "x":     re.compile(r"\bby\s+" + _TOKENS + _STOP, re.IGNORECASE),
    "color": re.compile(r"\bcolou?r\s+by\s+" + _TOKENS + _STOP, re.IGNORECASE),
    "y":     re.compile(r"\buse\s+" + _TOKENS + _STOP, re.IGNORECASE),
}

# A match whose preceding text ends with one of these belongs to another field
FIELD_EXCLUSIONS: dict[str, Pattern] = {
    "x": re.compile(r"\bcolou?r\s+$", re.IGNORECASE),
}


# ── helpers ──────────────────────────────────────────────────────────────────
def _first_rule(rules: list[tuple[Pattern, str]], text: str, default: str) -> str:
    for pattern, value in rules:
        if pattern.search(text):
            return value
    return default


def _extract_field(pattern: Pattern, prompt: str, exclude: Optional[Pattern] = None) -> Optional[str]:
    for match in pattern.finditer(prompt):
        if exclude is not None and exclude.search(prompt[:match.start()]):
            continue
        return match.group(1).strip() or None
    return None


def detect_chart_type(prompt: str) -> str:
    return _first_rule(TYPE_RULES, prompt.lower(), DEFAULT_TYPE)


def detect_aggregation(prompt: str) -> str:
    return _first_rule(AGG_RULES, prompt.lower(), DEFAULT_AGG)


# ── public entry point ───────────────────────────────────────────────────────
def interpret(prompt: str, columns: list[Column]) -> ChartSpec:
    """
    Build a ChartSpec from a prompt.

    Never fails: a prompt without any recognizable pattern yields a bar chart
    with sum aggregation titled with the prompt itself. Extracted field names
    keep the prompt's casing and are not checked against `columns`; the
    aggregation engine decides how to resolve them.
    """
    prompt = prompt or ""
    fields = {
        name: _extract_field(pattern, prompt, FIELD_EXCLUSIONS.get(name))
        for name, pattern in FIELD_RULES.items()
    }

    spec = ChartSpec(
        type=detect_chart_type(prompt),
        agg=detect_aggregation(prompt),
        title=prompt,
        **fields,
    )
    logger.info(
        f"Interpreted prompt '{prompt[:60]}' -> type={spec.type} agg={spec.agg} "
        f"x={spec.x} y={spec.y} color={spec.color} ({len(columns or [])} columns known)"
    )
    return spec
