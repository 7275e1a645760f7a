from __future__ import annotations

import html
import re

import webvtt

_CUE_NUMBER_RE = re.compile(r"^\d+$")
_TIMING_RE = re.compile(r"^(?:\d+:)?\d{2}:\d{2}\.\d{3}\s+-->\s+(?:\d+:)?\d{2}:\d{2}\.\d{3}(?:\s.*)?$")

# <c>, <c.colorE5E5E5>, </c>, <v Speaker>, <b>, <i>, <u>, inline <00:00:01.520>
_INLINE_TAG_RE = re.compile(
    r"</?(?:c|v|b|i|u|ruby|rt|lang)(?:[.\s][^>]*)?>|<\d{2}:\d{2}(?::\d{2})?\.\d{3}>",
    re.IGNORECASE,
)


def normalize_space(s: str) -> str:
    return re.sub(r"\s+", " ", (s or "").replace("\u200b", " ")).strip()


def _canonical_vtt(body: str) -> str:
    """
    Re-lay a caption body as blank-line separated cues so webvtt can read it.

    Everything before the first timing line is header (WEBVTT, Kind:,
    Language:, NOTE ...). Cue numbers and blank lines are dropped; every
    timing line opens a new cue. Returns "" when there is no cue at all.
    """
    out: list[str] = []
    seen_timing = False

    for line in (body or "").splitlines():
        s = line.strip()
        if not s:
            continue
        if _TIMING_RE.match(s):
            out.extend(["", s])
            seen_timing = True
            continue
        if not seen_timing or _CUE_NUMBER_RE.match(s) or "-->" in s:
            continue
        out.append(s)

    if not seen_timing:
        return ""
    return "WEBVTT\n" + "\n".join(out) + "\n"


def strip_timed_text(body: str) -> str:
    """
    Reduce a WebVTT caption body to plain text: header, cue numbers and
    timing lines go, cue text stays (inline tags removed, entities
    unescaped), joined with single spaces.

    Blank separators between cues are optional.
    """
    canonical = _canonical_vtt(body)
    if not canonical:
        return ""

    parts: list[str] = []
    for caption in webvtt.from_string(canonical):
        txt = _INLINE_TAG_RE.sub("", (caption.text or "").replace("\n", " "))
        txt = normalize_space(html.unescape(txt))
        if txt:
            parts.append(txt)
    return normalize_space(" ".join(parts))
