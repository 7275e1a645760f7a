from __future__ import annotations

from typing import Any

from app.services.errors import UpstreamInvalidResponse

REQUIRED_KEYS = ("summary", "keyConcepts", "quiz")

QUIZ_OPTION_COUNT = 4

# JSON schema handed to backends that support constrained output
STUDY_GUIDE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "summary": {"type": "string", "description": "A concise 3-5 sentence summary of the video."},
        "keyConcepts": {
            "type": "array",
            "description": "5-10 key concepts as 'Concept: Explanation' strings.",
            "items": {"type": "string"},
        },
        "quiz": {
            "type": "array",
            "description": "Multiple-choice questions testing understanding.",
            "items": {
                "type": "object",
                "properties": {
                    "question": {"type": "string"},
                    "options": {"type": "array", "items": {"type": "string"}},
                    "answer": {"type": "string", "description": "Exactly one of the options."},
                },
                "required": ["question", "options", "answer"],
            },
        },
    },
    "required": list(REQUIRED_KEYS),
}


def missing_keys(payload: Any) -> list[str]:
    if not isinstance(payload, dict):
        return list(REQUIRED_KEYS)
    return [k for k in REQUIRED_KEYS if k not in payload]


def validate_study_guide(payload: Any, raw: Any = None) -> dict[str, Any]:
    """
    Shallow check only: the payload must be an object carrying every
    required top-level key. Nested shapes are not inspected.
    """
    if not isinstance(payload, dict):
        raise UpstreamInvalidResponse("AI returned invalid JSON", raw=raw)

    missing = missing_keys(payload)
    if missing:
        raise UpstreamInvalidResponse(
            f"AI JSON missing required fields: {', '.join(missing)}",
            raw=payload,
        )
    return payload


def quiz_warnings(payload: dict[str, Any]) -> list[str]:
    """
    Advisory problems in the quiz (wrong option count, answer not among the
    options). Never used to reject a guide.
    """
    quiz = payload.get("quiz")
    if not isinstance(quiz, list):
        return ["quiz is not a list"]

    warnings: list[str] = []
    for i, q in enumerate(quiz, start=1):
        if not isinstance(q, dict):
            warnings.append(f"Q{i}: not an object")
            continue
        options = q.get("options")
        if not isinstance(options, list):
            warnings.append(f"Q{i}: options is not a list")
            continue
        if len(options) != QUIZ_OPTION_COUNT:
            warnings.append(f"Q{i}: expected {QUIZ_OPTION_COUNT} options, got {len(options)}")
        if q.get("answer") not in options:
            warnings.append(f"Q{i}: answer does not match any option")
    return warnings
