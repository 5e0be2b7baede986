from __future__ import annotations

from typing import Sequence

from gendash.models import DataPoint, KpiWidget


def summarize_kpi(widget: KpiWidget, rows: Sequence[DataPoint] | None) -> float | None:
    """Aggregate one field of a dataset for a KPI tile; ``None`` when there is nothing to show."""
    if not rows:
        return None
    series = [row.values.get(widget.field, 0.0) for row in rows]
    latest = series[-1]
    if widget.agg == "percentChange":
        base = series[0]
        return 0.0 if base == 0 else round((latest - base) / base, 4)
    if widget.agg == "average":
        return round(sum(series) / len(series), 4)
    if widget.agg == "sum":
        return round(sum(series), 4)
    return latest
