from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_STORAGE_ROOT = PROJECT_ROOT / "storage"


class Settings(BaseSettings):
    app_name: str = "Generative Dashboard API"
    api_prefix: str = "/api"
    frontend_origin: str = "http://localhost:3000"

    storage_root: Path = DEFAULT_STORAGE_ROOT

    default_llm_provider: str = "mock"
    openai_api_key: str | None = None
    openai_model: str = "gpt-5-mini"
    anthropic_api_key: str | None = None
    anthropic_model: str = "claude-sonnet-4-20250514"
    anthropic_max_tokens: int = 4096
    llm_retries: int = 2

    alpha_vantage_api_key: str | None = None
    alpha_vantage_url: str = "https://www.alphavantage.co/query"
    alpha_request_timeout_seconds: int = 20
    alpha_retries: int = 2
    alpha_cache_ttl_daily_seconds: int = 60 * 60 * 6
    alpha_cache_ttl_intraday_seconds: int = 60 * 15
    dataset_fetch_workers: int = 4

    log_level: str = "INFO"
    suppress_httpx_info_logs: bool = True
    verbose_pipeline_trace: bool = True
    log_preview_chars: int = 180

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()

for folder in [
    settings.storage_root,
    settings.storage_root / "workspace",
]:
    folder.mkdir(parents=True, exist_ok=True)
