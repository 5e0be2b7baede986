from __future__ import annotations

import hashlib
import math
from datetime import date, timedelta

from gendash.models import DashboardPlan, DataPoint
from gendash.services.layout import normalize_layout
from gendash.services.plan_validator import validate_plan


SAMPLE_PROMPTS: tuple[str, ...] = (
    "Build a dashboard for AAPL daily close YTD. Add a KPI for latest close and a line chart of close over time.",
    "Compare AAPL vs MSFT daily closes; show a combined line chart and KPIs for each latest close.",
    "Show SPY daily with 20 & 50 day SMA and a KPI for % change last 30 days.",
)

SAMPLE_PLAN_PAYLOAD: dict = {
    "title": "AAPL Daily - Close & KPIs",
    "description": "Latest close, 30 day change and the close price with 20 and 50 day moving averages.",
    "datasets": [
        {
            "id": "aapl_daily",
            "source": "alphaVantage",
            "function": "TIME_SERIES_DAILY",
            "symbol": "AAPL",
            "range": {"limit": 120},
            "indicators": [
                {"type": "SMA", "period": 20, "sourceField": "close"},
                {"type": "SMA", "period": 50, "sourceField": "close"},
                {"type": "PCT_CHANGE", "period": 30, "sourceField": "close", "target": "pct_change_30"},
            ],
        }
    ],
    "widgets": [
        {
            "type": "kpi",
            "title": "AAPL Latest Close",
            "datasetId": "aapl_daily",
            "field": "close",
            "agg": "latest",
            "format": "currency",
        },
        {
            "type": "kpi",
            "title": "AAPL 30 Day Change",
            "datasetId": "aapl_daily",
            "field": "pct_change_30",
            "agg": "latest",
            "format": "percent",
        },
        {
            "type": "line",
            "title": "AAPL Close with 20 & 50 SMA",
            "datasetId": "aapl_daily",
            "x": "time",
            "y": ["close", "sma_20", "sma_50"],
        },
    ],
    "layout": [
        {"widgetIndex": 0, "x": 0, "y": 0, "w": 4, "h": 2},
        {"widgetIndex": 1, "x": 4, "y": 0, "w": 4, "h": 2},
        {"widgetIndex": 2, "x": 0, "y": 2, "w": 12, "h": 6},
    ],
}

_SAMPLE_END = date(2025, 12, 31)


def sample_plan() -> DashboardPlan:
    plan = validate_plan(SAMPLE_PLAN_PAYLOAD)
    if not isinstance(plan, DashboardPlan):
        raise RuntimeError(f"bundled sample plan is invalid: {plan.issues}")
    return normalize_layout(plan)


def _sample_dates(function: str, points: int) -> list[str]:
    dates: list[date] = []
    cursor = _SAMPLE_END
    while len(dates) < points:
        if function == "TIME_SERIES_MONTHLY":
            dates.append(cursor)
            cursor = cursor.replace(day=1) - timedelta(days=1)
        elif function == "TIME_SERIES_WEEKLY":
            dates.append(cursor)
            cursor -= timedelta(days=7)
        else:
            if cursor.weekday() < 5:
                dates.append(cursor)
            cursor -= timedelta(days=1)
    return [row.isoformat() for row in reversed(dates)]


def sample_rows(symbol: str, function: str = "TIME_SERIES_DAILY", points: int = 100) -> list[DataPoint]:
    """Deterministic OHLCV rows used when live data is unavailable."""
    seed = int(hashlib.sha1(symbol.upper().encode("utf-8")).hexdigest()[:8], 16)
    base = 40.0 + seed % 260
    phase = (seed % 17) / 3.0
    rows: list[DataPoint] = []
    for idx, day in enumerate(_sample_dates(function, max(1, points))):
        close = base * (1 + 0.06 * math.sin(idx / 7.0 + phase) + 0.0015 * idx)
        swing = base * 0.01 * (1 + math.cos(idx / 3.0 + phase)) / 2
        rows.append(
            DataPoint(
                time=day,
                values={
                    "open": round(close - swing / 2, 2),
                    "high": round(close + swing, 2),
                    "low": round(close - swing, 2),
                    "close": round(close, 2),
                    "volume": float(1_000_000 + (seed + idx * 7919) % 500_000),
                },
            )
        )
    return rows
