import pytest

from gendash.models import DataPoint, Indicator
from gendash.services.indicators import NumericWindow, apply_indicators


def _rows(values, field="close"):
    return [
        DataPoint(time=f"2024-01-{idx + 1:02d}", values={} if value is None else {field: value})
        for idx, value in enumerate(values)
    ]


def _column(rows, field):
    return [row.values[field] for row in rows]


def test_sma_widens_over_short_prefix():
    rows = apply_indicators(_rows([1, 2, 3, 4, 5]), [Indicator(type="SMA", period=3)])
    assert _column(rows, "sma_3") == [1.0, 1.5, 2.0, 3.0, 4.0]


def test_sma_default_period_and_rounding():
    rows = apply_indicators(_rows([1, 2, 2]), [Indicator(type="SMA")])
    assert _column(rows, "sma_5") == [1.0, 1.5, pytest.approx(1.6667)]


def test_sma_skips_missing_values():
    rows = apply_indicators(_rows([4, None, 8]), [Indicator(type="SMA", period=2)])
    assert _column(rows, "sma_2") == [4.0, 4.0, 8.0]


def test_sma_with_no_valid_values_is_zero():
    rows = apply_indicators(_rows([None, None]), [Indicator(type="SMA", period=3)])
    assert _column(rows, "sma_3") == [0.0, 0.0]


def test_percent_change_against_clamped_base():
    rows = apply_indicators(_rows([10, 20, 15]), [Indicator(type="PCT_CHANGE", period=1)])
    assert _column(rows, "pct_change_1") == [0.0, 1.0, -0.25]


def test_percent_change_zero_base_is_zero():
    rows = apply_indicators(_rows([0, 5, 10]), [Indicator(type="PCT_CHANGE", period=2)])
    assert _column(rows, "pct_change_2") == [0.0, 0.0, 0.0]


def test_custom_source_and_target():
    rows = apply_indicators(
        _rows([100, 110], field="volume"),
        [Indicator(type="PCT_CHANGE", source_field="volume", target="vol_chg")],
    )
    assert _column(rows, "vol_chg") == [0.0, 0.1]
    assert "pct_change_1" not in rows[1].values


def test_indicators_compose_in_order():
    rows = apply_indicators(
        _rows([10, 20, 15]),
        [
            Indicator(type="PCT_CHANGE", period=1),
            Indicator(type="SMA", period=2, source_field="pct_change_1", target="smoothed"),
        ],
    )
    assert _column(rows, "smoothed") == [0.0, 0.5, 0.375]


def test_resample_is_a_no_op():
    source = _rows([1, 2, 3])
    rows = apply_indicators(source, [Indicator(type="RESAMPLE", window="weekly")])
    assert rows == source


def test_input_rows_are_not_mutated():
    source = _rows([1, 2, 3])
    rows = apply_indicators(source, [Indicator(type="SMA", period=2)])
    assert "sma_2" in rows[0].values
    assert all("sma_2" not in row.values for row in source)
    assert [row.time for row in rows] == [row.time for row in source]


def test_numeric_window_keeps_trailing_slots():
    window = NumericWindow(2)
    for value in (1, "x", 3, float("nan")):
        window = window.push(value)
    assert window.slots == (3.0, None)
    assert window.count == 1
    assert window.mean == 3.0


@pytest.mark.parametrize("period", [-1, -10])
def test_non_positive_period_uses_default(period):
    rows = apply_indicators(_rows([10, 20, 15]), [Indicator(type="PCT_CHANGE", period=period)])
    assert _column(rows, "pct_change_1") == [0.0, 1.0, -0.25]
