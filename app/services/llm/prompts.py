from __future__ import annotations

import re

from app.services.errors import InvalidInput

STUDY_GUIDE_INSTRUCTIONS = """You are an assistant that produces structured study guides from YouTube transcripts.
Return ONLY valid minified JSON matching this exact schema, no code fences:
{"summary":"string","keyConcepts":["string"],"quiz":[{"question":"string","options":["string"],"answer":"string"}]}
Rules:
- Keep summary concise (3-5 sentences).
- Provide 5-10 key concepts as "Concept: Explanation" strings.
- Create 5 multiple-choice questions. Each has 4 options and one correct answer that exactly matches one option.
- Ignore stage directions like [Music], [Laughter] and repeated caption artifacts.
- Do not include any markdown, explanation, or extra text. Output must be PURE JSON."""

STUDY_GUIDE_USER_TEMPLATE = """{instructions}

Transcript:
{transcript}"""

MODIFY_ACTIONS = ("rewrite", "translate", "proofread")

DEFAULT_TARGET_LANGUAGE = "Spanish"

_MODIFY_INSTRUCTIONS = {
    "rewrite": "Rewrite this text for clarity and concision, preserving meaning:",
    "translate": "Translate this text to {language}. Output only the translated text:",
    "proofread": "Proofread and correct grammar/spelling. Output the corrected text only:",
}


def build_study_guide_prompt(transcript: str) -> str:
    return STUDY_GUIDE_USER_TEMPLATE.format(instructions=STUDY_GUIDE_INSTRUCTIONS, transcript=transcript)


def build_modify_prompt(action: str, text: str, target_language: str | None = None) -> str:
    if action not in _MODIFY_INSTRUCTIONS:
        raise InvalidInput(f"Invalid action. Use {'|'.join(MODIFY_ACTIONS)}")
    instruction = _MODIFY_INSTRUCTIONS[action].format(language=target_language or DEFAULT_TARGET_LANGUAGE)
    return f"{instruction}\n\n{text}"


# ----------------------------
# Transcript compression
# ----------------------------

def _sentence_split(text: str) -> list[str]:
    parts = re.split(r"(?<=[.!?])\s+", text)
    parts = [p.strip() for p in parts if p.strip()]
    if len(parts) < 6:
        words = text.split()
        parts = [" ".join(words[i : i + 28]) for i in range(0, len(words), 28)]
    return parts


def _pick_evenly(items: list[str], k: int) -> list[str]:
    if not items or k <= 0:
        return []
    if len(items) <= k:
        return items
    if k == 1:
        return items[:1]
    idxs = sorted({round(i * (len(items) - 1) / (k - 1)) for i in range(k)})
    return [items[i] for i in idxs]


def compress_transcript(transcript: str, max_chars: int) -> str:
    """
    Keep evenly spaced sentences so a long transcript still covers the whole
    video but fits in max_chars. Short transcripts pass through untouched.
    """
    t = re.sub(r"\s+", " ", transcript or "").strip()
    if max_chars <= 0 or len(t) <= max_chars:
        return t

    sents = _sentence_split(t)
    if not sents:
        return t[:max_chars]

    avg = max(1, len(t) // len(sents))
    k = max(1, max_chars // avg)
    out = " ".join(_pick_evenly(sents, k)).strip()

    if len(out) > max_chars:
        out = out[:max_chars].rsplit(" ", 1)[0].strip()
    return out
