from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


IndicatorType = Literal["SMA", "PCT_CHANGE", "RESAMPLE"]
IndicatorWindow = Literal["daily", "weekly", "monthly"]
DatasetSource = Literal["alphaVantage"]
DatasetFunction = Literal["TIME_SERIES_DAILY", "TIME_SERIES_WEEKLY", "TIME_SERIES_MONTHLY"]
KpiAgg = Literal["latest", "average", "sum", "percentChange"]
KpiFormat = Literal["currency", "number", "percent"]
SeriesWidgetType = Literal["line", "area", "bar"]

INDICATOR_TYPES: tuple[str, ...] = ("SMA", "PCT_CHANGE", "RESAMPLE")
INDICATOR_WINDOWS: tuple[str, ...] = ("daily", "weekly", "monthly")
DATASET_SOURCE = "alphaVantage"
DATASET_FUNCTIONS: tuple[str, ...] = ("TIME_SERIES_DAILY", "TIME_SERIES_WEEKLY", "TIME_SERIES_MONTHLY")
KPI_AGGS: tuple[str, ...] = ("latest", "average", "sum", "percentChange")
KPI_FORMATS: tuple[str, ...] = ("currency", "number", "percent")
SERIES_WIDGET_TYPES: tuple[str, ...] = ("line", "area", "bar")
WIDGET_TYPES: tuple[str, ...] = ("kpi", *SERIES_WIDGET_TYPES)
RANGE_LIMIT_MAX = 500


class PlanModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Indicator(PlanModel):
    type: IndicatorType
    period: int | None = None
    source_field: str | None = Field(default=None, alias="sourceField")
    target: str | None = None
    window: IndicatorWindow | None = None


class DatasetRange(PlanModel):
    from_: str | None = Field(default=None, alias="from")
    to: str | None = None
    limit: int | None = None


class Dataset(PlanModel):
    id: str
    source: DatasetSource = DATASET_SOURCE
    function: DatasetFunction
    symbol: str
    range: DatasetRange = Field(default_factory=DatasetRange)
    indicators: list[Indicator] = Field(default_factory=list)


class KpiWidget(PlanModel):
    type: Literal["kpi"] = "kpi"
    title: str
    dataset_id: str = Field(alias="datasetId")
    field: str
    agg: KpiAgg
    format: KpiFormat = "number"


class SeriesWidget(PlanModel):
    type: SeriesWidgetType
    title: str
    dataset_id: str = Field(alias="datasetId")
    x: str = "time"
    y: list[str]


Widget = Annotated[Union[KpiWidget, SeriesWidget], Field(discriminator="type")]


class LayoutItem(PlanModel):
    widget_index: int = Field(alias="widgetIndex")
    x: int
    y: int
    w: int
    h: int


class DashboardPlan(PlanModel):
    title: str
    description: str = ""
    datasets: list[Dataset]
    widgets: list[Widget]
    layout: list[LayoutItem] = Field(default_factory=list)


class DataPoint(PlanModel):
    time: str
    values: dict[str, float] = Field(default_factory=dict)


class DatasetResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["success", "fallback", "error"]
    dataset_id: str = Field(alias="datasetId")
    symbol: str | None = None
    last_refreshed: str | None = Field(default=None, alias="lastRefreshed")
    rows: list[DataPoint] = Field(default_factory=list)
    cached: bool = False
    provider: str = "alphaVantage"
    note: str | None = None
    error: str | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.status != "error"


def serialize_plan(plan: DashboardPlan) -> dict[str, Any]:
    return plan.model_dump(mode="json", by_alias=True, exclude_none=True)
