from __future__ import annotations

import json

from gendash.models import DATASET_FUNCTIONS, INDICATOR_TYPES, KPI_AGGS, KPI_FORMATS, SERIES_WIDGET_TYPES
from gendash.services.sample_data import SAMPLE_PLAN_PAYLOAD, SAMPLE_PROMPTS


PLAN_SYSTEM_PROMPT = (
    "You are a strict dashboard planning assistant for financial market data. "
    "Return exactly one JSON object and nothing else. Do not wrap it in prose."
)


def _plan_contract() -> dict:
    return {
        "title": "string, required",
        "description": "string",
        "datasets": [
            {
                "id": "unique string referenced by widgets",
                "source": "alphaVantage",
                "function": list(DATASET_FUNCTIONS),
                "symbol": "ticker symbol, e.g. AAPL",
                "range": {"from": "YYYY-MM-DD", "to": "YYYY-MM-DD", "limit": "integer 1..500"},
                "indicators": [
                    {
                        "type": list(INDICATOR_TYPES),
                        "period": "positive integer",
                        "sourceField": "open | high | low | close | volume",
                        "target": "output field name, defaults to sma_<period> or pct_change_<period>",
                    }
                ],
            }
        ],
        "widgets": [
            {
                "type": "kpi",
                "title": "string",
                "datasetId": "dataset id",
                "field": "field name",
                "agg": list(KPI_AGGS),
                "format": list(KPI_FORMATS),
            },
            {
                "type": list(SERIES_WIDGET_TYPES),
                "title": "string",
                "datasetId": "dataset id",
                "x": "time",
                "y": ["one or more field names"],
            },
        ],
        "layout": [{"widgetIndex": 0, "x": 0, "y": 0, "w": "1..12", "h": "rows"}],
    }


def build_plan_prompts(prompt: str) -> tuple[str, str]:
    user = "\n".join(
        [
            "Plan a financial markets dashboard backed by Alpha Vantage daily, weekly or monthly time series.",
            "Support KPI tiles and line, area or bar charts on a 12 column grid.",
            "Prefer a compact range (limit <= 100) unless the request asks for long history.",
            "Plan contract:",
            json.dumps(_plan_contract(), indent=2),
            "Example requests:",
            *[f"- {row}" for row in SAMPLE_PROMPTS],
            "Example plan (for the first request):",
            json.dumps(SAMPLE_PLAN_PAYLOAD, indent=2),
            f'User prompt: "{prompt.strip()}"',
        ]
    )
    return PLAN_SYSTEM_PROMPT, user
