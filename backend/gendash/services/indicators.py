from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Sequence

from gendash.models import DataPoint, Indicator


logger = logging.getLogger("gendash.indicators")

DEFAULT_SOURCE_FIELD = "close"
DEFAULT_PERIODS = {"SMA": 5, "PCT_CHANGE": 1}
TARGET_PREFIXES = {"SMA": "sma", "PCT_CHANGE": "pct_change"}
PRECISION = 4


def _finite(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    number = float(value)
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class NumericWindow:
    """Trailing window of at most ``size`` slots.

    Slots holding ``None`` still occupy a position but are left out of the
    sum and count.
    """

    size: int
    slots: tuple[float | None, ...] = ()

    def push(self, value: Any) -> "NumericWindow":
        slots = (*self.slots, _finite(value))
        return NumericWindow(self.size, slots[-max(1, self.size):])

    @property
    def total(self) -> float:
        return sum(slot for slot in self.slots if slot is not None)

    @property
    def count(self) -> int:
        return sum(1 for slot in self.slots if slot is not None)

    @property
    def mean(self) -> float:
        count = self.count
        return self.total / count if count else 0.0


def _with_value(row: DataPoint, target: str, value: float) -> DataPoint:
    return DataPoint(time=row.time, values={**row.values, target: value})


def _settings_for(indicator: Indicator) -> tuple[int, str, str]:
    period = indicator.period if indicator.period and indicator.period > 0 else DEFAULT_PERIODS[indicator.type]
    source = indicator.source_field or DEFAULT_SOURCE_FIELD
    target = indicator.target or f"{TARGET_PREFIXES[indicator.type]}_{period}"
    return period, source, target


def simple_moving_average(rows: Sequence[DataPoint], indicator: Indicator) -> list[DataPoint]:
    period, source, target = _settings_for(indicator)
    window = NumericWindow(period)
    out: list[DataPoint] = []
    for row in rows:
        window = window.push(row.values.get(source))
        out.append(_with_value(row, target, round(window.mean, PRECISION)))
    return out


def percent_change(rows: Sequence[DataPoint], indicator: Indicator) -> list[DataPoint]:
    period, source, target = _settings_for(indicator)
    out: list[DataPoint] = []
    for idx, row in enumerate(rows):
        current = _finite(row.values.get(source))
        base = _finite(rows[max(0, idx - period)].values.get(source))
        if current is None or base is None or base == 0:
            change = 0.0
        else:
            change = (current - base) / base
        out.append(_with_value(row, target, round(change, PRECISION)))
    return out


_INDICATORS: dict[str, Callable[[Sequence[DataPoint], Indicator], list[DataPoint]]] = {
    "SMA": simple_moving_average,
    "PCT_CHANGE": percent_change,
}


def apply_indicators(rows: Sequence[DataPoint], indicators: Iterable[Indicator]) -> list[DataPoint]:
    current = list(rows)
    for indicator in indicators:
        handler = _INDICATORS.get(indicator.type)
        if handler is None:
            logger.debug("indicator_skipped type=%s", indicator.type)
            continue
        current = handler(current, indicator)
    return current
