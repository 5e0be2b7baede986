import json
import logging

from gendash.errors import ExtractionError, PlanValidationError
from gendash.models import serialize_plan
from gendash.services.plan_pipeline import PipelineState, run_plan_pipeline


def test_fenced_model_output_reaches_normalized(plan_payload):
    plan_payload["layout"] = []
    raw = "Here you go:\n```json\n" + json.dumps(plan_payload, indent=2) + "\n```\nEnjoy."
    outcome = run_plan_pipeline(raw, trace_id="t1")
    assert outcome.ok
    assert outcome.state is PipelineState.NORMALIZED
    assert [item.y for item in outcome.plan.layout] == [0, 4]
    assert outcome.error is None


def test_repaired_output_is_accepted(plan_payload):
    text = json.dumps(plan_payload).replace("]}", "],}")
    assert "],}" in text
    outcome = run_plan_pipeline(text)
    assert outcome.ok
    assert serialize_plan(outcome.plan)["title"] == "IBM Daily"


def test_prose_only_fails_at_extraction():
    outcome = run_plan_pipeline("I could not build a dashboard for that.")
    assert outcome.state is PipelineState.FAILED
    assert isinstance(outcome.error, ExtractionError)
    assert outcome.error.reason == ExtractionError.NO_JSON_OBJECT
    assert outcome.plan is None
    assert not outcome.ok


def test_structurally_invalid_plan_fails_at_validation(plan_payload):
    plan_payload["datasets"] = []
    outcome = run_plan_pipeline(json.dumps(plan_payload))
    assert outcome.state is PipelineState.FAILED
    assert isinstance(outcome.error, PlanValidationError)
    assert "plan has no valid datasets" in outcome.error.issues


def test_dropped_entities_are_reported_and_logged(plan_payload, caplog):
    plan_payload["widgets"].append({"type": "pie", "title": "Nope", "datasetId": "ibm_daily"})
    with caplog.at_level(logging.WARNING, logger="gendash.pipeline"):
        outcome = run_plan_pipeline(json.dumps(plan_payload))
    assert outcome.ok
    assert [issue.path for issue in outcome.issues] == ["widgets[2]"]
    assert any("plan_entity_dropped" in record.getMessage() for record in caplog.records)


def test_pipeline_is_deterministic(plan_payload):
    raw = json.dumps(plan_payload)
    first = run_plan_pipeline(raw)
    second = run_plan_pipeline(raw)
    assert serialize_plan(first.plan) == serialize_plan(second.plan)


def test_deep_nesting_fails_without_raising():
    outcome = run_plan_pipeline('plan: {"title": "x", "junk": ' + "[" * 200_000 + "]" * 200_000 + "}")
    assert outcome.state is PipelineState.FAILED
    assert outcome.error.reason == ExtractionError.JSON_PARSE_FAILED
