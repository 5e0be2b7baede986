"""Caller-side policy around the plan pipeline.

The pipeline itself never falls back; this module substitutes the bundled
sample plan when generation fails, loads datasets for the plan and keeps the
persisted workspace in step with the latest generation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from gendash.errors import PlanIssue
from gendash.models import DashboardPlan, KpiWidget
from gendash.providers.factory import get_provider
from gendash.services.kpi import summarize_kpi
from gendash.services.market_data import AlphaVantageClient, DatasetBatch, load_plan_datasets
from gendash.services.plan_pipeline import run_plan_pipeline
from gendash.services.sample_data import sample_plan
from gendash.services.trace import log_event
from gendash.services.workspace import GenerationEpochs, WorkspaceSnapshot, WorkspaceStore


logger = logging.getLogger("gendash.dashboard")


@dataclass
class GeneratedPlan:
    plan: DashboardPlan
    provider: str
    fallback: bool = False
    message: str | None = None
    issues: list[PlanIssue] = field(default_factory=list)


@dataclass
class KpiSummary:
    widget_index: int
    widget: KpiWidget
    value: float | None


def generate_plan(prompt: str, *, provider_name: str | None = None) -> GeneratedPlan:
    provider = get_provider(provider_name)
    raw_text = provider.generate_plan_text(prompt)
    outcome = run_plan_pipeline(raw_text)
    warnings = list(provider.last_warnings)

    if outcome.ok and outcome.plan is not None:
        return GeneratedPlan(
            plan=outcome.plan,
            provider=provider.name,
            message=" ".join(warnings) or None,
            issues=outcome.issues,
        )

    reason = outcome.error.message if outcome.error else "unknown error"
    log_event(logger, "plan_fallback_to_sample", level=logging.WARNING, provider=provider.name, reason=reason)
    message = " ".join([*warnings, f"Plan generation failed ({reason}); showing the sample plan instead."])
    return GeneratedPlan(
        plan=sample_plan(),
        provider="sample",
        fallback=True,
        message=message,
        issues=outcome.issues,
    )


def summarize_kpis(plan: DashboardPlan, batch: DatasetBatch) -> list[KpiSummary]:
    summaries: list[KpiSummary] = []
    for idx, widget in enumerate(plan.widgets):
        if not isinstance(widget, KpiWidget):
            continue
        result = batch.results.get(widget.dataset_id)
        rows = result.rows if result is not None and result.ok else None
        summaries.append(KpiSummary(widget_index=idx, widget=widget, value=summarize_kpi(widget, rows)))
    return summaries


def build_dashboard(
    generated: GeneratedPlan,
    *,
    epoch: int,
    epochs: GenerationEpochs,
    store: WorkspaceStore,
    client: AlphaVantageClient | None = None,
) -> tuple[DatasetBatch, bool]:
    """Load datasets for *generated* and persist them if *epoch* is still current.

    Returns the batch and whether it was accepted.
    """
    batch = load_plan_datasets(generated.plan, epoch=epoch, client=client)
    snapshot = WorkspaceSnapshot(
        plan=generated.plan,
        datasets=batch.results,
        epoch=epoch,
        provider=generated.provider,
        notes=batch.notes,
    )
    if not epochs.commit(epoch, lambda: store.save(snapshot)):
        log_event(logger, "dataset_batch_stale", epoch=epoch, current=epochs.current)
        return batch, False
    return batch, True
