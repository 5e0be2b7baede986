"""Alpha Vantage time-series loading for plan datasets.

Every dataset resolves to a ``DatasetResult``; nothing raises past
``AlphaVantageClient.load_dataset`` or ``load_plan_datasets``. Rate-limit and
unsupported-symbol responses degrade to deterministic sample rows with a note,
transport failures become ``error`` results.
"""

from __future__ import annotations

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Callable

import requests

from gendash.config import settings
from gendash.models import DashboardPlan, DataPoint, Dataset, DatasetRange, DatasetResult
from gendash.services.indicators import apply_indicators
from gendash.services.response_cache import ResponseCache
from gendash.services.sample_data import sample_rows
from gendash.services.trace import log_event, preview_text


logger = logging.getLogger("gendash.market_data")

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "open": ("1. open", "open", "Open"),
    "high": ("2. high", "high", "High"),
    "low": ("3. low", "low", "Low"),
    "close": ("4. close", "close", "Close"),
    "volume": ("5. volume", "volume", "Volume"),
}
REQUIRED_FIELDS = ("open", "high", "low", "close")
RATE_LIMIT_KEYS = ("Note", "Information")
ERROR_MESSAGE_KEY = "Error Message"
COMPACT_ROW_LIMIT = 100


class UpstreamError(Exception):
    def __init__(self, code: str, message: str, *, detail: str | None = None, soft: bool = False):
        super().__init__(message)
        self.code = code
        self.message = message
        self.detail = detail
        self.soft = soft


def _to_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _resolve_field(record: dict[str, Any], name: str) -> float | None:
    for alias in FIELD_ALIASES[name]:
        number = _to_number(record.get(alias))
        if number is not None:
            return number
    return None


def _find_key(payload: dict[str, Any], needle: str) -> str | None:
    for key in payload:
        if needle in str(key).lower():
            return key
    return None


def parse_time_series(payload: Any) -> tuple[list[DataPoint], dict[str, str]]:
    if not isinstance(payload, dict):
        raise UpstreamError("missing_body", "Alpha Vantage payload missing body")
    series_key = _find_key(payload, "time series")
    series = payload.get(series_key) if series_key else None
    if not isinstance(series, dict):
        raise UpstreamError("missing_series", "Alpha Vantage response missing time series data")

    rows: list[DataPoint] = []
    for stamp, record in series.items():
        if not isinstance(record, dict):
            continue
        values: dict[str, float] = {}
        for name in FIELD_ALIASES:
            number = _resolve_field(record, name)
            if number is not None:
                values[name] = number
        if any(name not in values for name in REQUIRED_FIELDS):
            continue
        values.setdefault("volume", 0.0)
        rows.append(DataPoint(time=str(stamp), values=values))
    rows.sort(key=lambda row: row.time)

    meta: dict[str, str] = {}
    meta_key = _find_key(payload, "meta data")
    raw_meta = payload.get(meta_key) if meta_key else None
    if isinstance(raw_meta, dict):
        symbol_key = _find_key(raw_meta, "symbol")
        refreshed_key = _find_key(raw_meta, "last refreshed")
        if symbol_key:
            meta["symbol"] = str(raw_meta[symbol_key])
        if refreshed_key:
            meta["last_refreshed"] = str(raw_meta[refreshed_key])
    return rows, meta


def apply_range(rows: list[DataPoint], data_range: DatasetRange) -> list[DataPoint]:
    selected = rows
    if data_range.from_:
        bound = data_range.from_
        selected = [row for row in selected if row.time[: len(bound)] >= bound]
    if data_range.to:
        bound = data_range.to
        selected = [row for row in selected if row.time[: len(bound)] <= bound]
    if data_range.limit:
        selected = selected[-data_range.limit :]
    return selected


def _ttl_for_function(function: str) -> int:
    if "INTRADAY" in function.upper():
        return settings.alpha_cache_ttl_intraday_seconds
    return settings.alpha_cache_ttl_daily_seconds


class AlphaVantageClient:
    provider = "alphaVantage"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        session: requests.Session | None = None,
        cache: ResponseCache | None = None,
        timeout_seconds: float | None = None,
        retries: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = api_key if api_key is not None else settings.alpha_vantage_api_key
        self.base_url = base_url or settings.alpha_vantage_url
        self.session = session or requests.Session()
        self.cache = cache if cache is not None else ResponseCache()
        self.timeout_seconds = timeout_seconds or settings.alpha_request_timeout_seconds
        self.retries = settings.alpha_retries if retries is None else max(0, retries)
        self._sleep = sleep

    def build_params(self, dataset: Dataset) -> dict[str, str]:
        limit = dataset.range.limit or 0
        return {
            "function": dataset.function,
            "symbol": dataset.symbol,
            "outputsize": "full" if limit > COMPACT_ROW_LIMIT else "compact",
            "apikey": str(self.api_key or ""),
        }

    def cache_key(self, params: dict[str, str]) -> str:
        url = requests.Request("GET", self.base_url, params=sorted(params.items())).prepare().url or self.base_url
        if self.api_key:
            url = url.replace(str(self.api_key), "{key}")
        return url

    def fetch_payload(self, dataset: Dataset) -> tuple[dict[str, Any], bool]:
        params = self.build_params(dataset)
        key = self.cache_key(params)
        cached = self.cache.get(key)
        if cached is not None:
            return cached, True

        last_error: Exception | None = None
        payload: Any = None
        for attempt in range(self.retries + 1):
            started = perf_counter()
            try:
                response = self.session.get(self.base_url, params=params, timeout=self.timeout_seconds)
                response.raise_for_status()
                payload = response.json()
                log_event(
                    logger,
                    "alpha_request_done",
                    symbol=dataset.symbol,
                    function=dataset.function,
                    attempt=attempt + 1,
                    duration_sec=round(perf_counter() - started, 2),
                )
                break
            except (requests.RequestException, ValueError) as exc:
                last_error = exc
                log_event(
                    logger,
                    "alpha_request_error",
                    level=logging.WARNING,
                    symbol=dataset.symbol,
                    attempt=f"{attempt + 1}/{self.retries + 1}",
                    reason=str(exc),
                )
                if attempt < self.retries:
                    self._sleep(0.6 * (2**attempt))
        else:
            raise UpstreamError("transport", "Failed to reach Alpha Vantage", detail=str(last_error))

        if not isinstance(payload, dict):
            raise UpstreamError("missing_body", "Alpha Vantage payload missing body")
        for sentinel in RATE_LIMIT_KEYS:
            if payload.get(sentinel):
                raise UpstreamError("rate_limited", "Alpha Vantage rate limit reached", detail=str(payload[sentinel]), soft=True)
        if payload.get(ERROR_MESSAGE_KEY):
            raise UpstreamError("alpha_error", "Alpha Vantage rejected the request", detail=str(payload[ERROR_MESSAGE_KEY]), soft=True)

        self.cache.set(key, payload, ttl_seconds=_ttl_for_function(dataset.function))
        return payload, False

    def _fallback(self, dataset: Dataset, note: str) -> DatasetResult:
        rows = apply_range(sample_rows(dataset.symbol, dataset.function), dataset.range)
        rows = apply_indicators(rows, dataset.indicators)
        return DatasetResult(
            status="fallback",
            dataset_id=dataset.id,
            symbol=dataset.symbol,
            last_refreshed=rows[-1].time if rows else None,
            rows=rows,
            provider="sample",
            note=note,
        )

    def load_dataset(self, dataset: Dataset) -> DatasetResult:
        if not self.api_key:
            return self._fallback(dataset, f"ALPHA_VANTAGE_API_KEY missing; sample data shown for {dataset.symbol}.")

        try:
            payload, cached = self.fetch_payload(dataset)
            rows, meta = parse_time_series(payload)
        except UpstreamError as exc:
            if exc.soft:
                log_event(logger, "alpha_soft_failure", level=logging.WARNING, dataset_id=dataset.id, code=exc.code, detail=exc.detail)
                note = f"{exc.message} for {dataset.symbol}; sample data shown. {preview_text(exc.detail or '', 240)}".strip()
                return self._fallback(dataset, note)
            log_event(logger, "alpha_dataset_error", level=logging.WARNING, dataset_id=dataset.id, code=exc.code, detail=exc.detail)
            return DatasetResult(status="error", dataset_id=dataset.id, symbol=dataset.symbol, error=exc.message, detail=exc.detail)

        rows = apply_indicators(apply_range(rows, dataset.range), dataset.indicators)
        if not rows:
            return DatasetResult(
                status="error",
                dataset_id=dataset.id,
                symbol=dataset.symbol,
                error="Dataset returned no rows after parsing",
            )
        return DatasetResult(
            status="success",
            dataset_id=dataset.id,
            symbol=meta.get("symbol", dataset.symbol),
            last_refreshed=meta.get("last_refreshed", rows[-1].time),
            rows=rows,
            cached=cached,
            provider=self.provider,
        )


@dataclass
class DatasetBatch:
    epoch: int
    results: dict[str, DatasetResult] = field(default_factory=dict)

    @property
    def notes(self) -> list[str]:
        notes: list[str] = []
        for dataset_id, result in self.results.items():
            if result.note:
                notes.append(f"{dataset_id}: {result.note}")
            if result.error:
                notes.append(f"{dataset_id}: {result.error}")
        return notes


_default_client: AlphaVantageClient | None = None


def get_market_data_client() -> AlphaVantageClient:
    global _default_client
    if _default_client is None:
        _default_client = AlphaVantageClient()
    return _default_client


def _load_one(client: AlphaVantageClient, dataset: Dataset) -> DatasetResult:
    try:
        return client.load_dataset(dataset)
    except Exception as exc:
        logger.exception("dataset_load_crashed dataset_id=%s", dataset.id)
        return DatasetResult(status="error", dataset_id=dataset.id, symbol=dataset.symbol, error="Failed to load dataset", detail=str(exc))


def load_plan_datasets(
    plan: DashboardPlan,
    *,
    epoch: int = 0,
    client: AlphaVantageClient | None = None,
    max_workers: int | None = None,
) -> DatasetBatch:
    client = client or get_market_data_client()
    workers = max(1, min(max_workers or settings.dataset_fetch_workers, len(plan.datasets) or 1))
    batch = DatasetBatch(epoch=epoch)
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="gendash-data") as executor:
        futures = [(dataset, executor.submit(_load_one, client, dataset)) for dataset in plan.datasets]
        for dataset, future in futures:
            batch.results[dataset.id] = future.result()
    return batch
