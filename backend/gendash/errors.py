from __future__ import annotations

from dataclasses import dataclass


class PlanError(Exception):
    """Base class for plan pipeline failures.

    Instances are handed back to callers as values; the pipeline never raises
    them so the caller decides whether to fall back to the sample plan.
    """

    code = "plan_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def as_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class ExtractionError(PlanError):
    code = "extraction_failed"

    NO_JSON_OBJECT = "no_json_object"
    JSON_PARSE_FAILED = "json_parse_failed"

    def __init__(self, reason: str, *, raw_text: str, parser_message: str | None = None):
        message = "no JSON object found" if reason == self.NO_JSON_OBJECT else "JSON parse failed"
        super().__init__(message)
        self.reason = reason
        self.raw_text = raw_text
        self.parser_message = parser_message

    def as_dict(self) -> dict:
        payload = super().as_dict()
        payload["reason"] = self.reason
        if self.parser_message:
            payload["detail"] = self.parser_message
        return payload


class PlanValidationError(PlanError):
    code = "invalid_plan"

    def __init__(self, issues: list[str]):
        super().__init__("Invalid dashboard plan")
        self.issues = list(issues)

    def as_dict(self) -> dict:
        payload = super().as_dict()
        payload["issues"] = list(self.issues)
        return payload


@dataclass(frozen=True)
class PlanIssue:
    """One nested entity the validator dropped, and why."""

    path: str
    reason: str

    def __str__(self) -> str:
        return f"{self.path}: {self.reason}"
