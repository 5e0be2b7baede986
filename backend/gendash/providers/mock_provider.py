import json

from gendash.providers.base import BaseLLMProvider
from gendash.services.sample_data import SAMPLE_PLAN_PAYLOAD


class MockProvider(BaseLLMProvider):
    name = "mock"

    def generate_plan_text(self, prompt: str) -> str:
        self.reset_warnings()
        self.last_warnings.append("No model provider configured; returning the sample plan.")
        body = json.dumps(SAMPLE_PLAN_PAYLOAD, indent=2)
        return f"Here is a dashboard plan for: {prompt.strip()}\n\n```json\n{body}\n```\n"
