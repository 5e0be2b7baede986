from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from gendash.config import settings
from gendash.errors import PlanValidationError
from gendash.models import DatasetResult, serialize_plan
from gendash.schemas import (
    DashboardOut,
    DatasetRequest,
    KpiSummaryOut,
    PlanOut,
    PlanRequest,
    PlanValidateOut,
    PlanValidateRequest,
    WorkspaceOut,
)
from gendash.services.dashboard_service import build_dashboard, generate_plan, summarize_kpis
from gendash.services.layout import normalize_layout
from gendash.services.market_data import AlphaVantageClient, get_market_data_client
from gendash.services.plan_validator import parse_dashboard_dataset, validate_plan_with_issues
from gendash.services.sample_data import SAMPLE_PROMPTS
from gendash.services.workspace import GenerationEpochs, WorkspaceStore


logger = logging.getLogger("gendash.api")

app = FastAPI(title=settings.app_name)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_origin, "*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_store: WorkspaceStore | None = None
_epochs = GenerationEpochs()


def _configure_runtime_logging() -> None:
    level = getattr(logging, str(settings.log_level).upper(), logging.INFO)
    for name in ("gendash", "gendash.api", "gendash.pipeline", "gendash.market_data", "gendash.providers"):
        logging.getLogger(name).setLevel(level)

    if settings.suppress_httpx_info_logs:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("openai").setLevel(logging.WARNING)
        logging.getLogger("anthropic").setLevel(logging.WARNING)


@app.on_event("startup")
def on_startup():
    _configure_runtime_logging()


def get_store() -> WorkspaceStore:
    global _store
    if _store is None:
        _store = WorkspaceStore()
    return _store


def get_epochs() -> GenerationEpochs:
    return _epochs


def get_market_client() -> AlphaVantageClient:
    return get_market_data_client()


def _require_prompt(req: PlanRequest) -> str:
    prompt = req.prompt.strip()
    if not prompt:
        raise HTTPException(status_code=400, detail="Prompt is required")
    return prompt


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post(f"{settings.api_prefix}/plan", response_model=PlanOut)
def create_plan(req: PlanRequest):
    prompt = _require_prompt(req)
    generated = generate_plan(prompt, provider_name=req.provider)
    return PlanOut(
        plan=serialize_plan(generated.plan),
        provider=generated.provider,
        fallback=generated.fallback,
        message=generated.message,
        issues=[str(issue) for issue in generated.issues],
        presets=list(SAMPLE_PROMPTS),
    )


@app.post(f"{settings.api_prefix}/plan/validate", response_model=PlanValidateOut)
def validate_plan_payload(req: PlanValidateRequest):
    result, issues = validate_plan_with_issues(req.plan)
    if isinstance(result, PlanValidationError):
        return PlanValidateOut(valid=False, issues=[str(issue) for issue in issues], error=result.as_dict())
    return PlanValidateOut(
        valid=True,
        plan=serialize_plan(normalize_layout(result)),
        issues=[str(issue) for issue in issues],
    )


@app.post(
    f"{settings.api_prefix}/datasets",
    response_model=DatasetResult,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
def load_dataset(req: DatasetRequest, client: AlphaVantageClient = Depends(get_market_client)):
    try:
        dataset = parse_dashboard_dataset(req.dataset)
    except PlanValidationError as exc:
        raise HTTPException(status_code=400, detail={"error": "invalid_dataset", "issues": exc.issues}) from exc
    if req.dataset_id and req.dataset_id != dataset.id:
        raise HTTPException(status_code=400, detail="datasetId does not match dataset.id")
    return client.load_dataset(dataset)


@app.post(f"{settings.api_prefix}/dashboard", response_model=DashboardOut, response_model_exclude_none=True)
def create_dashboard(
    req: PlanRequest,
    store: WorkspaceStore = Depends(get_store),
    epochs: GenerationEpochs = Depends(get_epochs),
    client: AlphaVantageClient = Depends(get_market_client),
):
    prompt = _require_prompt(req)
    epoch = epochs.begin()
    generated = generate_plan(prompt, provider_name=req.provider)
    batch, accepted = build_dashboard(generated, epoch=epoch, epochs=epochs, store=store, client=client)
    if not accepted:
        raise HTTPException(status_code=409, detail="A newer dashboard generation superseded this request")
    return DashboardOut(
        epoch=epoch,
        plan=serialize_plan(generated.plan),
        provider=generated.provider,
        fallback=generated.fallback,
        message=generated.message,
        issues=[str(issue) for issue in generated.issues],
        datasets=batch.results,
        notes=batch.notes,
        kpis=[
            KpiSummaryOut(
                widget_index=row.widget_index,
                dataset_id=row.widget.dataset_id,
                title=row.widget.title,
                value=row.value,
                format=row.widget.format,
            )
            for row in summarize_kpis(generated.plan, batch)
        ],
    )


@app.get(f"{settings.api_prefix}/workspace", response_model=WorkspaceOut, response_model_exclude_none=True)
def get_workspace(store: WorkspaceStore = Depends(get_store)):
    snapshot = store.load()
    if snapshot is None:
        return WorkspaceOut()
    return WorkspaceOut(
        plan=serialize_plan(snapshot.plan),
        datasets=snapshot.datasets,
        epoch=snapshot.epoch,
        provider=snapshot.provider,
        notes=snapshot.notes,
    )


@app.delete(f"{settings.api_prefix}/workspace")
def reset_workspace(
    include_cache: bool = Query(default=False),
    store: WorkspaceStore = Depends(get_store),
    client: AlphaVantageClient = Depends(get_market_client),
):
    cleared = store.clear()
    if include_cache:
        client.cache.clear()
    return {"cleared": cleared}
