from anthropic import Anthropic

from gendash.config import settings
from gendash.providers.base import BaseLLMProvider
from gendash.services.prompt_templates import build_plan_prompts


class AnthropicProvider(BaseLLMProvider):
    name = "anthropic"

    def __init__(self, api_key: str, client: Anthropic | None = None):
        super().__init__()
        self.client = client or Anthropic(api_key=api_key)
        self.model = settings.anthropic_model

    def _create_message(self, system: str, user: str) -> str:
        response = self.client.messages.create(
            model=self.model,
            max_tokens=settings.anthropic_max_tokens,
            temperature=0.2,
            system=system,
            messages=[{"role": "user", "content": user}],
        )
        return "".join(block.text for block in response.content if hasattr(block, "text"))

    def generate_plan_text(self, prompt: str) -> str:
        self.reset_warnings()
        system, user = build_plan_prompts(prompt)
        try:
            return self._with_retry(
                lambda: self._create_message(system, user),
                label="generate_plan",
                retries=settings.llm_retries,
            )
        except Exception as exc:
            self.last_warnings.append(f"Anthropic plan request failed ({exc}).")
            return ""
