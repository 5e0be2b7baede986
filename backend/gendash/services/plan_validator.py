"""Structural validation of untrusted plan payloads.

Every nested entity is checked on its own. Entities that fail their shape
check are dropped (and reported as ``PlanIssue`` diagnostics) instead of
failing the whole plan; only a plan without a title, datasets or widgets is
rejected outright.
"""

from __future__ import annotations

from typing import Any, Callable

from gendash.errors import PlanIssue, PlanValidationError
from gendash.models import (
    DATASET_FUNCTIONS,
    DATASET_SOURCE,
    INDICATOR_TYPES,
    INDICATOR_WINDOWS,
    KPI_AGGS,
    KPI_FORMATS,
    RANGE_LIMIT_MAX,
    DashboardPlan,
    Dataset,
    DatasetRange,
    Indicator,
    KpiWidget,
    LayoutItem,
    SeriesWidget,
)


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _parse_indicator(value: Any, path: str, issues: list[PlanIssue]) -> Indicator | None:
    if not isinstance(value, dict):
        issues.append(PlanIssue(path, "indicator must be an object"))
        return None
    if value.get("type") not in INDICATOR_TYPES:
        issues.append(PlanIssue(path, f"unrecognized indicator type {value.get('type')!r}"))
        return None

    fields: dict[str, Any] = {"type": value["type"]}
    if "period" in value:
        period = _as_int(value["period"])
        if period is not None and period > 0:
            fields["period"] = period
        else:
            issues.append(PlanIssue(f"{path}.period", "must be a positive integer"))
    for key in ("sourceField", "target"):
        if key in value:
            if _is_text(value[key]):
                fields[key] = value[key]
            else:
                issues.append(PlanIssue(f"{path}.{key}", "must be a non-empty string"))
    if "window" in value:
        if value["window"] in INDICATOR_WINDOWS:
            fields["window"] = value["window"]
        else:
            issues.append(PlanIssue(f"{path}.window", f"unrecognized window {value['window']!r}"))
    return Indicator.model_validate(fields)


def _parse_range(value: Any, path: str, issues: list[PlanIssue]) -> DatasetRange:
    if value is None:
        return DatasetRange()
    if not isinstance(value, dict):
        issues.append(PlanIssue(path, "range must be an object"))
        return DatasetRange()

    fields: dict[str, Any] = {}
    for key in ("from", "to"):
        if key in value:
            if _is_text(value[key]):
                fields[key] = value[key]
            else:
                issues.append(PlanIssue(f"{path}.{key}", "must be a non-empty string"))
    if "limit" in value:
        limit = _as_int(value["limit"])
        if limit is not None and 0 < limit <= RANGE_LIMIT_MAX:
            fields["limit"] = limit
        else:
            issues.append(PlanIssue(f"{path}.limit", f"must be an integer between 1 and {RANGE_LIMIT_MAX}"))
    return DatasetRange.model_validate(fields)


def _parse_dataset(value: Any, path: str, issues: list[PlanIssue]) -> Dataset | None:
    if not isinstance(value, dict):
        issues.append(PlanIssue(path, "dataset must be an object"))
        return None
    if not _is_text(value.get("id")):
        issues.append(PlanIssue(path, "missing dataset id"))
        return None
    if value.get("source") != DATASET_SOURCE:
        issues.append(PlanIssue(path, f"unsupported source {value.get('source')!r}"))
        return None
    if value.get("function") not in DATASET_FUNCTIONS:
        issues.append(PlanIssue(path, f"unsupported function {value.get('function')!r}"))
        return None
    if not _is_text(value.get("symbol")):
        issues.append(PlanIssue(path, "missing symbol"))
        return None

    raw_indicators = value.get("indicators")
    indicators: list[Indicator] = []
    if isinstance(raw_indicators, list):
        for idx, row in enumerate(raw_indicators):
            indicator = _parse_indicator(row, f"{path}.indicators[{idx}]", issues)
            if indicator is not None:
                indicators.append(indicator)
    elif raw_indicators is not None:
        issues.append(PlanIssue(f"{path}.indicators", "must be an array"))

    return Dataset(
        id=value["id"],
        source=DATASET_SOURCE,
        function=value["function"],
        symbol=value["symbol"],
        range=_parse_range(value.get("range"), f"{path}.range", issues),
        indicators=indicators,
    )


def _parse_kpi_widget(value: dict[str, Any], path: str, issues: list[PlanIssue]) -> KpiWidget | None:
    if not _is_text(value.get("field")):
        issues.append(PlanIssue(path, "kpi widget requires a field"))
        return None
    if value.get("agg") not in KPI_AGGS:
        issues.append(PlanIssue(path, f"unrecognized kpi agg {value.get('agg')!r}"))
        return None
    return KpiWidget(
        title=value["title"],
        dataset_id=value["datasetId"],
        field=value["field"],
        agg=value["agg"],
        format=value["format"] if value.get("format") in KPI_FORMATS else "number",
    )


def _parse_series_widget(value: dict[str, Any], path: str, issues: list[PlanIssue]) -> SeriesWidget | None:
    x = value.get("x", "time")
    if not _is_text(x):
        issues.append(PlanIssue(path, "series widget x must be a field name"))
        return None
    raw_series = value.get("y")
    if not isinstance(raw_series, list):
        issues.append(PlanIssue(path, "series widget y must be an array"))
        return None
    series = [entry for entry in raw_series if _is_text(entry)]
    if not series:
        issues.append(PlanIssue(path, "series widget has no valid y fields"))
        return None
    return SeriesWidget(
        type=value["type"],
        title=value["title"],
        dataset_id=value["datasetId"],
        x=x,
        y=series,
    )


_WIDGET_PARSERS: dict[str, Callable[[dict[str, Any], str, list[PlanIssue]], Any]] = {
    "kpi": _parse_kpi_widget,
    "line": _parse_series_widget,
    "area": _parse_series_widget,
    "bar": _parse_series_widget,
}


def _parse_widget(value: Any, path: str, issues: list[PlanIssue]) -> KpiWidget | SeriesWidget | None:
    if not isinstance(value, dict):
        issues.append(PlanIssue(path, "widget must be an object"))
        return None
    parser = _WIDGET_PARSERS.get(str(value.get("type")))
    if parser is None:
        issues.append(PlanIssue(path, f"unrecognized widget type {value.get('type')!r}"))
        return None
    if not _is_text(value.get("title")):
        issues.append(PlanIssue(path, "missing widget title"))
        return None
    if not _is_text(value.get("datasetId")):
        issues.append(PlanIssue(path, "missing datasetId"))
        return None
    return parser(value, path, issues)


def _parse_layout_item(value: Any, path: str, issues: list[PlanIssue]) -> LayoutItem | None:
    if not isinstance(value, dict):
        issues.append(PlanIssue(path, "layout item must be an object"))
        return None
    fields: dict[str, int] = {}
    for key, minimum in (("widgetIndex", 0), ("x", 0), ("y", 0), ("w", 1), ("h", 1)):
        number = _as_int(value.get(key))
        if number is None or number < minimum:
            issues.append(PlanIssue(path, f"{key} must be an integer >= {minimum}"))
            return None
        fields[key] = number
    return LayoutItem.model_validate(fields)


def _parse_list(value: Any, path: str, parser: Callable, issues: list[PlanIssue]) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        issues.append(PlanIssue(path, "must be an array"))
        return []
    parsed = []
    for idx, row in enumerate(value):
        item = parser(row, f"{path}[{idx}]", issues)
        if item is not None:
            parsed.append(item)
    return parsed


def validate_plan_with_issues(value: Any) -> tuple[DashboardPlan | PlanValidationError, list[PlanIssue]]:
    issues: list[PlanIssue] = []
    if not isinstance(value, dict):
        return PlanValidationError(["plan must be a JSON object"]), issues

    datasets = _parse_list(value.get("datasets"), "datasets", _parse_dataset, issues)
    widgets = _parse_list(value.get("widgets"), "widgets", _parse_widget, issues)
    layout = _parse_list(value.get("layout"), "layout", _parse_layout_item, issues)

    problems: list[str] = []
    if not _is_text(value.get("title")):
        problems.append("plan requires a non-empty title")
    if not datasets:
        problems.append("plan has no valid datasets")
    if not widgets:
        problems.append("plan has no valid widgets")
    if problems:
        return PlanValidationError(problems + [str(issue) for issue in issues]), issues

    description = value.get("description")
    plan = DashboardPlan(
        title=value["title"],
        description=description if isinstance(description, str) else "",
        datasets=datasets,
        widgets=widgets,
        layout=layout,
    )
    return plan, issues


def validate_plan(value: Any) -> DashboardPlan | PlanValidationError:
    plan, _ = validate_plan_with_issues(value)
    return plan


def parse_dashboard_dataset(value: Any) -> Dataset:
    issues: list[PlanIssue] = []
    dataset = _parse_dataset(value, "dataset", issues)
    if dataset is None:
        raise PlanValidationError([str(issue) for issue in issues])
    return dataset
