"""Textual repairs for JSON emitted by generative models.

``build_repair_candidates`` returns the raw fragment followed by a series of
cumulatively repaired rewrites. Callers try to parse them in order and keep
the first one that succeeds.
"""

from __future__ import annotations

from typing import Callable


_DOUBLE_QUOTE_VARIANTS = ("\u201c", "\u201d", "\u201e", "\u201f")
_SINGLE_QUOTE_VARIANTS = ("\u2018", "\u2019", "\u201a", "\u201b")
_CLOSERS = ("}", "]")
_VALUE_OPENERS = (":", "[", ",")
_VALUE_TERMINATORS = (",", "}", "]")


def normalize_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n")


def normalize_smart_quotes(text: str) -> str:
    out = text
    for variant in _DOUBLE_QUOTE_VARIANTS:
        out = out.replace(variant, '"')
    for variant in _SINGLE_QUOTE_VARIANTS:
        out = out.replace(variant, "'")
    return out


def strip_trailing_commas(text: str) -> str:
    """Drop commas that sit right before a closing brace or bracket.

    Quote state is tracked for both quote styles so commas inside string
    content are never touched. A quote preceded by an odd run of backslashes
    is content, not a delimiter. Runs such as ``[1,,]`` collapse fully, which
    keeps the transform idempotent.
    """
    out: list[str] = []
    quote: str | None = None
    backslashes = 0
    for char in text:
        if char == "\\":
            backslashes += 1
            out.append(char)
            continue
        escaped = backslashes % 2 == 1
        backslashes = 0

        if quote is not None:
            if char == quote and not escaped:
                quote = None
            out.append(char)
            continue

        if char in ('"', "'") and not escaped:
            quote = char
        elif char in _CLOSERS:
            idx = len(out) - 1
            while idx >= 0 and (out[idx] == "," or out[idx].isspace()):
                if out[idx] == ",":
                    del out[idx]
                idx -= 1
        out.append(char)
    return "".join(out)


def _find_span_end(text: str, start: int, quote: str) -> int:
    backslashes = 0
    for idx in range(start + 1, len(text)):
        char = text[idx]
        if char == "\\":
            backslashes += 1
            continue
        if char == quote and backslashes % 2 == 0:
            return idx
        backslashes = 0
    return -1


def _neighbour(text: str, idx: int, step: int) -> str:
    while 0 <= idx < len(text):
        if not text[idx].isspace():
            return text[idx]
        idx += step
    return ""


def _requote(inner: str) -> str:
    out: list[str] = []
    idx = 0
    while idx < len(inner):
        char = inner[idx]
        if char == "\\" and idx + 1 < len(inner):
            following = inner[idx + 1]
            out.append("'" if following == "'" else char + following)
            idx += 2
            continue
        out.append('\\"' if char == '"' else char)
        idx += 1
    return '"' + "".join(out) + '"'


def convert_single_quotes(text: str) -> str:
    """Rewrite single-quoted keys and values as double-quoted strings.

    A span is converted when it is followed by ``:`` (a key) or when it sits in
    value position: after ``:``, ``[`` or ``,`` and before ``,``, ``}`` or
    ``]``. Double-quoted strings are copied through untouched.
    """
    out: list[str] = []
    idx = 0
    while idx < len(text):
        char = text[idx]
        if char not in ('"', "'"):
            out.append(char)
            idx += 1
            continue

        end = _find_span_end(text, idx, char)
        if end < 0:
            out.append(text[idx:])
            break
        span = text[idx : end + 1]
        if char == "'":
            before = _neighbour(text, idx - 1, -1)
            after = _neighbour(text, end + 1, 1)
            is_key = after == ":"
            is_value = before in _VALUE_OPENERS and after in _VALUE_TERMINATORS
            if is_key or is_value:
                span = _requote(text[idx + 1 : end])
        out.append(span)
        idx = end + 1
    return "".join(out)


REPAIR_STEPS: tuple[Callable[[str], str], ...] = (
    lambda text: text,
    normalize_line_endings,
    normalize_smart_quotes,
    strip_trailing_commas,
    convert_single_quotes,
)


def build_repair_candidates(text: str) -> list[str]:
    candidates: list[str] = []
    current = str(text or "")
    for step in REPAIR_STEPS:
        current = step(current).strip()
        if not candidates or current not in candidates:
            candidates.append(current)
    return candidates
