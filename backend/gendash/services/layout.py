from __future__ import annotations

from typing import Sequence

from gendash.models import DashboardPlan, KpiWidget, LayoutItem, SeriesWidget


GRID_COLUMNS = 12
ROW_STEP = 4
KPI_SPAN = (4, 2)
CHART_SPAN = (GRID_COLUMNS, 6)


def default_layout(widgets: Sequence[KpiWidget | SeriesWidget]) -> list[LayoutItem]:
    layout: list[LayoutItem] = []
    for idx, widget in enumerate(widgets):
        w, h = KPI_SPAN if widget.type == "kpi" else CHART_SPAN
        layout.append(LayoutItem(widget_index=idx, x=0, y=idx * ROW_STEP, w=w, h=h))
    return layout


def normalize_layout(plan: DashboardPlan) -> DashboardPlan:
    if len(plan.layout) == len(plan.widgets):
        return plan
    return plan.model_copy(update={"layout": default_layout(plan.widgets)})
