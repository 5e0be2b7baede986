import pytest

from gendash.models import DataPoint, DatasetResult, KpiWidget
from gendash.providers.base import BaseLLMProvider
from gendash.services import dashboard_service
from gendash.services.dashboard_service import build_dashboard, generate_plan, summarize_kpis
from gendash.services.kpi import summarize_kpi
from gendash.services.market_data import AlphaVantageClient, DatasetBatch
from gendash.services.sample_data import SAMPLE_PLAN_PAYLOAD, sample_plan, sample_rows
from gendash.services.workspace import GenerationEpochs, WorkspaceStore


class ProseProvider(BaseLLMProvider):
    name = "prose"

    def generate_plan_text(self, prompt):
        self.reset_warnings()
        return "Sorry, I can only describe dashboards in words."


def _rows(*closes):
    return [DataPoint(time=f"2024-01-{idx + 1:02d}", values={"close": close}) for idx, close in enumerate(closes)]


@pytest.mark.parametrize(
    "agg, expected",
    [("latest", 12.0), ("average", 11.0), ("sum", 33.0), ("percentChange", 0.2)],
)
def test_summarize_kpi(agg, expected):
    widget = KpiWidget(title="t", dataset_id="d", field="close", agg=agg)
    assert summarize_kpi(widget, _rows(10.0, 11.0, 12.0)) == pytest.approx(expected)


def test_summarize_kpi_edge_cases():
    widget = KpiWidget(title="t", dataset_id="d", field="close", agg="percentChange")
    assert summarize_kpi(widget, []) is None
    assert summarize_kpi(widget, None) is None
    assert summarize_kpi(widget, _rows(0.0, 5.0)) == 0.0


def test_sample_rows_are_deterministic():
    first = sample_rows("AAPL", points=30)
    second = sample_rows("aapl", points=30)
    assert first == second
    assert len(first) == 30
    assert first[-1].time == "2025-12-31"
    assert [row.time for row in first] == sorted(row.time for row in first)
    assert sample_rows("MSFT", points=30) != first


def test_sample_plan_matches_bundled_payload():
    plan = sample_plan()
    assert plan.title == SAMPLE_PLAN_PAYLOAD["title"]
    assert len(plan.layout) == len(plan.widgets) == 3


def test_generate_plan_with_mock_provider():
    generated = generate_plan("AAPL daily please")
    assert generated.provider == "mock"
    assert generated.fallback is False
    assert generated.plan == sample_plan()
    assert "sample plan" in generated.message


def test_generate_plan_falls_back_when_pipeline_fails(monkeypatch):
    monkeypatch.setattr(dashboard_service, "get_provider", lambda name=None: ProseProvider())
    generated = generate_plan("anything")
    assert generated.fallback is True
    assert generated.provider == "sample"
    assert generated.plan == sample_plan()
    assert "no JSON object found" in generated.message


def test_summarize_kpis_skips_failed_datasets():
    plan = sample_plan()
    batch = DatasetBatch(
        epoch=1,
        results={"aapl_daily": DatasetResult(status="error", dataset_id="aapl_daily", error="down")},
    )
    summaries = summarize_kpis(plan, batch)
    assert [row.widget_index for row in summaries] == [0, 1]
    assert all(row.value is None for row in summaries)


def test_build_dashboard_persists_current_epoch(tmp_path):
    store = WorkspaceStore(root=tmp_path)
    epochs = GenerationEpochs()
    epoch = epochs.begin()
    generated = generate_plan("AAPL")
    batch, accepted = build_dashboard(
        generated, epoch=epoch, epochs=epochs, store=store, client=AlphaVantageClient(api_key="")
    )
    assert accepted
    assert batch.results["aapl_daily"].status == "fallback"
    snapshot = store.load()
    assert snapshot.epoch == epoch
    assert snapshot.notes == batch.notes


def test_build_dashboard_drops_stale_epoch(tmp_path):
    store = WorkspaceStore(root=tmp_path)
    epochs = GenerationEpochs()
    stale = epochs.begin()
    epochs.begin()
    _, accepted = build_dashboard(
        generate_plan("AAPL"), epoch=stale, epochs=epochs, store=store, client=AlphaVantageClient(api_key="")
    )
    assert not accepted
    assert store.load() is None
