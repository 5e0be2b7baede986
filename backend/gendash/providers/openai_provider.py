from openai import OpenAI

from gendash.config import settings
from gendash.providers.base import BaseLLMProvider
from gendash.services.prompt_templates import build_plan_prompts


class OpenAIProvider(BaseLLMProvider):
    name = "openai"

    def __init__(self, api_key: str, client: OpenAI | None = None):
        super().__init__()
        self.client = client or OpenAI(api_key=api_key)
        self.model = settings.openai_model

    def _create_response(self, system: str, user: str) -> str:
        response = self.client.responses.create(
            model=self.model,
            input=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        )
        text = (response.output_text or "").strip()
        if not text:
            raise ValueError("OpenAI returned empty output")
        return text

    def generate_plan_text(self, prompt: str) -> str:
        self.reset_warnings()
        system, user = build_plan_prompts(prompt)
        try:
            return self._with_retry(
                lambda: self._create_response(system, user),
                label="generate_plan",
                retries=settings.llm_retries,
            )
        except Exception as exc:
            self.last_warnings.append(f"OpenAI plan request failed ({exc}).")
            return ""
