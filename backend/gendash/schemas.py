from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from gendash.models import DatasetResult


class PlanRequest(BaseModel):
    prompt: str = ""
    provider: str | None = None


class PlanOut(BaseModel):
    plan: dict[str, Any]
    provider: str
    fallback: bool = False
    message: str | None = None
    issues: list[str] = Field(default_factory=list)
    presets: list[str] = Field(default_factory=list)


class PlanValidateRequest(BaseModel):
    plan: Any = None


class PlanValidateOut(BaseModel):
    valid: bool
    plan: dict[str, Any] | None = None
    issues: list[str] = Field(default_factory=list)
    error: dict[str, Any] | None = None


class DatasetRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    dataset_id: str | None = Field(default=None, alias="datasetId")
    dataset: Any = None


class KpiSummaryOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    widget_index: int = Field(alias="widgetIndex")
    dataset_id: str = Field(alias="datasetId")
    title: str
    value: float | None = None
    format: str = "number"


class DashboardOut(BaseModel):
    epoch: int
    plan: dict[str, Any]
    provider: str
    fallback: bool = False
    message: str | None = None
    issues: list[str] = Field(default_factory=list)
    datasets: dict[str, DatasetResult] = Field(default_factory=dict)
    notes: list[str] = Field(default_factory=list)
    kpis: list[KpiSummaryOut] = Field(default_factory=list)


class WorkspaceOut(BaseModel):
    plan: dict[str, Any] | None = None
    datasets: dict[str, DatasetResult] = Field(default_factory=dict)
    epoch: int = 0
    provider: str = "sample"
    notes: list[str] = Field(default_factory=list)
