from __future__ import annotations

import json
import logging
import re
from typing import Any

from gendash.errors import ExtractionError
from gendash.services.json_repair import build_repair_candidates


logger = logging.getLogger("gendash.pipeline")

_FENCED_BLOCK_RE = re.compile(r"```(?:json)?[ \t]*\r?\n?(.*?)```", re.IGNORECASE | re.DOTALL)


def locate_json_object(text: str) -> str | None:
    """Return the outermost ``{...}`` slice of *text*, preferring a fenced block."""
    fenced = _FENCED_BLOCK_RE.search(text)
    scope = fenced.group(1) if fenced else text
    first = scope.find("{")
    last = scope.rfind("}")
    if first < 0 or last < 0 or first >= last:
        return None
    return scope[first : last + 1]


def _reject_constant(token: str) -> Any:
    raise ValueError(f"{token} is not valid JSON")


def extract_plan(raw_text: str) -> Any | ExtractionError:
    text = str(raw_text or "")
    candidate = locate_json_object(text)
    if candidate is None:
        return ExtractionError(ExtractionError.NO_JSON_OBJECT, raw_text=text)

    parser_message: str | None = None
    for idx, repaired in enumerate(build_repair_candidates(candidate)):
        try:
            value = json.loads(repaired, parse_constant=_reject_constant)
        except (ValueError, RecursionError) as exc:
            parser_message = str(exc)
            continue
        if idx:
            logger.debug("plan_extract_repaired candidate_index=%d", idx)
        return value

    return ExtractionError(ExtractionError.JSON_PARSE_FAILED, raw_text=text, parser_message=parser_message)
