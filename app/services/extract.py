from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from app.services.waterfall import first_non_empty

# ```json\n{...}\n```  or  ```{...}```
_FENCE_RE = re.compile(r"```[ \t]*([A-Za-z0-9_+-]*)[ \t]*\r?\n?(.*?)```", re.DOTALL)


@dataclass
class ExtractionResult:
    """Parsed value, or value=None with the raw text kept for diagnostics."""

    value: Any
    raw: str
    method: str | None = None

    @property
    def ok(self) -> bool:
        return self.method is not None


class _Parsed:
    """Wrapper so falsy JSON values ({}, [], 0) still count as a success."""

    def __init__(self, value: Any, method: str) -> None:
        self.value = value
        self.method = method


def _loads(candidate: str, method: str) -> _Parsed:
    return _Parsed(json.loads(candidate), method)


def _direct(text: str) -> _Parsed:
    return _loads(text, "direct")


def _fenced(text: str) -> _Parsed | None:
    m = _FENCE_RE.search(text)
    if not m:
        return None
    return _loads(m.group(2).strip(), "fence")


def _brace_slice(text: str) -> _Parsed | None:
    # First "{" to last "}". Not brace-balanced: stray braces in the prose
    # around the payload widen the slice and the parse fails.
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        return None
    return _loads(text[start : end + 1], "braces")


_ATTEMPTS = (_direct, _fenced, _brace_slice)


def extract_result(raw_text: str) -> ExtractionResult:
    text = raw_text or ""
    if not text.strip():
        return ExtractionResult(value=None, raw=text)

    parsed = first_non_empty(_ATTEMPTS, text)
    if parsed is None:
        return ExtractionResult(value=None, raw=text)
    return ExtractionResult(value=parsed.value, raw=text, method=parsed.method)


def extract_structured(raw_text: str) -> Any | None:
    """
    Best-effort JSON recovery from model output. Never raises.

    Tries, in order: the whole text, the first fenced code block, the slice
    from the first "{" to the last "}". Returns None if all fail.
    """
    return extract_result(raw_text).value
