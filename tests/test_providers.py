from types import SimpleNamespace

from gendash.config import settings
from gendash.providers import base
from gendash.providers.anthropic_provider import AnthropicProvider
from gendash.providers.factory import get_provider
from gendash.providers.mock_provider import MockProvider
from gendash.providers.openai_provider import OpenAIProvider
from gendash.services.plan_pipeline import run_plan_pipeline
from gendash.services.prompt_templates import PLAN_SYSTEM_PROMPT, build_plan_prompts


class FakeMessages:
    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return SimpleNamespace(content=[SimpleNamespace(text=result)])


class FakeResponses:
    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return SimpleNamespace(output_text=result)


def test_factory_defaults_to_mock_without_keys():
    assert isinstance(get_provider(), MockProvider)
    assert isinstance(get_provider("openai"), MockProvider)
    assert isinstance(get_provider("Anthropic"), MockProvider)


def test_factory_builds_configured_provider(monkeypatch):
    monkeypatch.setattr(settings, "anthropic_api_key", "sk-ant-test")
    provider = get_provider("anthropic")
    assert isinstance(provider, AnthropicProvider)
    assert provider.name == "anthropic"


def test_mock_provider_output_survives_pipeline():
    provider = MockProvider()
    text = provider.generate_plan_text("  AAPL trend  ")
    assert text.startswith("Here is a dashboard plan for: AAPL trend")
    assert "```json" in text
    assert provider.last_warnings
    assert run_plan_pipeline(text).ok


def test_prompts_embed_user_request():
    system, user = build_plan_prompts(" SPY with SMA 20 ")
    assert system == PLAN_SYSTEM_PROMPT
    assert 'User prompt: "SPY with SMA 20"' in user
    assert "TIME_SERIES_WEEKLY" in user


def test_anthropic_retries_then_returns_text(monkeypatch):
    monkeypatch.setattr(base.time, "sleep", lambda _: None)
    messages = FakeMessages(RuntimeError("overloaded"), '{"title": "x"}')
    provider = AnthropicProvider("key", client=SimpleNamespace(messages=messages))
    assert provider.generate_plan_text("x") == '{"title": "x"}'
    assert len(messages.calls) == 2
    assert messages.calls[0]["system"] == PLAN_SYSTEM_PROMPT
    assert provider.last_warnings == []


def test_anthropic_failure_becomes_warning(monkeypatch):
    monkeypatch.setattr(base.time, "sleep", lambda _: None)
    messages = FakeMessages(RuntimeError("down"), RuntimeError("still down"))
    provider = AnthropicProvider("key", client=SimpleNamespace(messages=messages))
    assert provider.generate_plan_text("x") == ""
    assert provider.last_warnings == ["Anthropic plan request failed (still down)."]


def test_openai_empty_output_is_retried(monkeypatch):
    monkeypatch.setattr(base.time, "sleep", lambda _: None)
    responses = FakeResponses("   ", "plan text")
    provider = OpenAIProvider("key", client=SimpleNamespace(responses=responses))
    assert provider.generate_plan_text("x") == "plan text"
    assert responses.calls[1]["input"][0] == {"role": "system", "content": PLAN_SYSTEM_PROMPT}


def test_openai_failure_becomes_warning(monkeypatch):
    monkeypatch.setattr(base.time, "sleep", lambda _: None)
    responses = FakeResponses(RuntimeError("quota"), RuntimeError("quota"))
    provider = OpenAIProvider("key", client=SimpleNamespace(responses=responses))
    assert provider.generate_plan_text("x") == ""
    assert provider.last_warnings == ["OpenAI plan request failed (quota)."]
