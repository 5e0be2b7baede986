from __future__ import annotations

import pytest

from gendash.config import settings


@pytest.fixture(autouse=True)
def _offline_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "default_llm_provider", "mock")
    monkeypatch.setattr(settings, "openai_api_key", None)
    monkeypatch.setattr(settings, "anthropic_api_key", None)
    monkeypatch.setattr(settings, "alpha_vantage_api_key", None)
    monkeypatch.setattr(settings, "llm_retries", 1)


@pytest.fixture
def plan_payload() -> dict:
    return {
        "title": "IBM Daily",
        "description": "Close with a 3 day average",
        "datasets": [
            {
                "id": "ibm_daily",
                "source": "alphaVantage",
                "function": "TIME_SERIES_DAILY",
                "symbol": "IBM",
                "range": {"from": "2024-01-01", "limit": 30},
                "indicators": [{"type": "SMA", "period": 3, "sourceField": "close"}],
            }
        ],
        "widgets": [
            {
                "type": "kpi",
                "title": "Latest close",
                "datasetId": "ibm_daily",
                "field": "close",
                "agg": "latest",
                "format": "currency",
            },
            {
                "type": "line",
                "title": "Close vs SMA",
                "datasetId": "ibm_daily",
                "x": "time",
                "y": ["close", "sma_3"],
            },
        ],
        "layout": [
            {"widgetIndex": 0, "x": 0, "y": 0, "w": 4, "h": 2},
            {"widgetIndex": 1, "x": 0, "y": 2, "w": 12, "h": 6},
        ],
    }
