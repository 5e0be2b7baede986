"""Raw model text -> canonical dashboard plan.

The pipeline is a pure function of its input: no network, no shared state.
Failures come back inside ``PlanOutcome`` so the caller can substitute the
sample plan and surface a note.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from uuid import uuid4

from gendash.errors import ExtractionError, PlanError, PlanIssue, PlanValidationError
from gendash.models import DashboardPlan
from gendash.services.layout import normalize_layout
from gendash.services.plan_extractor import extract_plan
from gendash.services.plan_validator import validate_plan_with_issues
from gendash.services.trace import log_event


logger = logging.getLogger("gendash.pipeline")


class PipelineState(str, Enum):
    IDLE = "idle"
    EXTRACTING = "extracting"
    VALIDATING = "validating"
    NORMALIZED = "normalized"
    FAILED = "failed"


@dataclass
class PlanOutcome:
    state: PipelineState = PipelineState.IDLE
    plan: DashboardPlan | None = None
    error: PlanError | None = None
    issues: list[PlanIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state is PipelineState.NORMALIZED and self.plan is not None


def run_plan_pipeline(raw_text: str, *, trace_id: str | None = None) -> PlanOutcome:
    trace_id = trace_id or uuid4().hex[:8]
    outcome = PlanOutcome()

    outcome.state = PipelineState.EXTRACTING
    log_event(logger, "plan_pipeline_extracting", trace_id=trace_id, input_chars=len(raw_text or ""))
    extracted = extract_plan(raw_text)
    if isinstance(extracted, ExtractionError):
        outcome.state = PipelineState.FAILED
        outcome.error = extracted
        log_event(
            logger,
            "plan_pipeline_failed",
            level=logging.WARNING,
            trace_id=trace_id,
            stage="extracting",
            reason=extracted.reason,
            detail=extracted.parser_message,
            raw_preview=extracted.raw_text,
        )
        return outcome

    outcome.state = PipelineState.VALIDATING
    log_event(logger, "plan_pipeline_validating", trace_id=trace_id, value_type=type(extracted).__name__)
    validated, issues = validate_plan_with_issues(extracted)
    outcome.issues = issues
    for issue in issues:
        log_event(logger, "plan_entity_dropped", level=logging.WARNING, trace_id=trace_id, path=issue.path, reason=issue.reason)
    if isinstance(validated, PlanValidationError):
        outcome.state = PipelineState.FAILED
        outcome.error = validated
        log_event(
            logger,
            "plan_pipeline_failed",
            level=logging.WARNING,
            trace_id=trace_id,
            stage="validating",
            issues=validated.issues,
        )
        return outcome

    outcome.plan = normalize_layout(validated)
    outcome.state = PipelineState.NORMALIZED
    log_event(
        logger,
        "plan_pipeline_normalized",
        trace_id=trace_id,
        title=outcome.plan.title,
        datasets=len(outcome.plan.datasets),
        widgets=len(outcome.plan.widgets),
        layout_rebuilt=len(validated.layout) != len(validated.widgets),
    )
    return outcome
