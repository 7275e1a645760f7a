from __future__ import annotations

import logging
from typing import Any

from app.services.errors import InvalidInput, UpstreamInvalidResponse
from app.services.extract import extract_result
from app.services.guide_schema import STUDY_GUIDE_SCHEMA, quiz_warnings, validate_study_guide
from app.services.llm.base import ModelBackend
from app.services.llm.prompts import (
    MODIFY_ACTIONS,
    build_modify_prompt,
    build_study_guide_prompt,
    compress_transcript,
)
from app.services.retry import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)


def _clip(s: str, max_chars: int = 200) -> str:
    s = (s or "").strip()
    if len(s) <= max_chars:
        return s
    return s[: max_chars - 3].rstrip() + "..."


def require_transcript(transcript: Any) -> str:
    if not isinstance(transcript, str) or not transcript.strip():
        raise InvalidInput("Missing or invalid transcript")
    return transcript


def require_modify_input(text: Any, action: Any) -> tuple[str, str]:
    if not isinstance(text, str) or not text.strip():
        raise InvalidInput("Missing or invalid text")
    if action not in MODIFY_ACTIONS:
        raise InvalidInput(f"Invalid action. Use {'|'.join(MODIFY_ACTIONS)}")
    return text, action


async def generate_study_guide(
    transcript: Any,
    backend: ModelBackend,
    policy: RetryPolicy,
    *,
    max_chars: int = 0,
) -> dict[str, Any]:
    """
    transcript -> prompt -> model (with retry) -> JSON recovery -> key check.

    Returns the parsed guide as the model produced it; quiz problems are
    only logged.
    """
    transcript = require_transcript(transcript)
    prompt = build_study_guide_prompt(compress_transcript(transcript, max_chars))

    raw = await call_with_retry(lambda: backend.generate(prompt, STUDY_GUIDE_SCHEMA), policy)

    result = extract_result(raw)
    if not result.ok or not isinstance(result.value, dict):
        logger.warning(f"{backend.name} returned unparseable output: {_clip(raw)!r}")
        raise UpstreamInvalidResponse("AI returned invalid JSON", raw=raw)

    guide = validate_study_guide(result.value, raw=raw)
    if result.method != "direct":
        logger.info(f"study guide recovered via {result.method}")

    for w in quiz_warnings(guide):
        logger.warning(f"study guide quiz: {w}")

    return guide


async def modify_text(
    text: Any,
    action: Any,
    backend: ModelBackend,
    policy: RetryPolicy,
    *,
    target_language: str | None = None,
) -> str:
    text, action = require_modify_input(text, action)
    prompt = build_modify_prompt(action, text, target_language)
    raw = await call_with_retry(lambda: backend.generate(prompt), policy)

    modified = (raw or "").strip()
    if not modified:
        raise UpstreamInvalidResponse("AI returned empty modification", raw=raw)
    return modified
