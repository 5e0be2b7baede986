import logging
import time
from time import perf_counter
from typing import Callable

from gendash.services.trace import log_event


logger = logging.getLogger("gendash.providers")


class BaseLLMProvider:
    name = "base"
    model = ""
    last_warnings: list[str]

    def __init__(self):
        self.last_warnings = []

    def reset_warnings(self) -> None:
        self.last_warnings = []

    def _with_retry(self, request: Callable[[], str], *, label: str, retries: int) -> str:
        """Run *request* up to ``retries + 1`` times with exponential backoff.

        The last error is re-raised once attempts are exhausted.
        """
        last_error: Exception | None = None
        for attempt in range(retries + 1):
            started = perf_counter()
            log_event(logger, f"{self.name}_request_start", label=label, model=self.model, attempt=f"{attempt + 1}/{retries + 1}")
            try:
                text = request()
            except Exception as exc:
                last_error = exc
                log_event(
                    logger,
                    f"{self.name}_request_error",
                    level=logging.WARNING,
                    label=label,
                    attempt=f"{attempt + 1}/{retries + 1}",
                    duration_sec=round(perf_counter() - started, 2),
                    reason=str(exc),
                )
                if attempt < retries:
                    time.sleep(0.6 * (2**attempt))
                continue
            log_event(
                logger,
                f"{self.name}_request_done",
                label=label,
                duration_sec=round(perf_counter() - started, 2),
                output_chars=len(text),
                output_preview=text,
            )
            return text
        if last_error:
            raise last_error
        raise RuntimeError(f"{self.name} request failed with unknown error")

    def generate_plan_text(self, prompt: str) -> str:
        """Return the raw model response for a dashboard request.

        The response is untrusted text; the plan pipeline is responsible for
        finding and validating the plan inside it.
        """
        raise NotImplementedError
