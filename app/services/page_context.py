from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

_PLAYER_RESPONSE_RE = re.compile(r"ytInitialPlayerResponse\s*=\s*({.+?})\s*;\s*(?:var\s|</script>)", re.DOTALL)


@dataclass
class CaptionTrack:
    language_code: str
    is_asr: bool
    base_url: str
    name: str = ""

    @classmethod
    def from_renderer(cls, raw: dict[str, Any]) -> "CaptionTrack":
        name = raw.get("name") or {}
        if isinstance(name, dict):
            name = name.get("simpleText") or "".join(r.get("text", "") for r in name.get("runs") or [])
        return cls(
            language_code=str(raw.get("languageCode") or ""),
            is_asr=str(raw.get("kind") or "").lower() == "asr",
            base_url=str(raw.get("baseUrl") or ""),
            name=str(name or ""),
        )


def caption_tracks(player_response: dict[str, Any] | None) -> list[CaptionTrack]:
    """Caption tracks in the order the player lists them."""
    if not isinstance(player_response, dict):
        return []
    renderer = (player_response.get("captions") or {}).get("playerCaptionsTracklistRenderer") or {}
    raw_tracks = renderer.get("captionTracks")
    if not isinstance(raw_tracks, list):
        return []
    return [CaptionTrack.from_renderer(t) for t in raw_tracks if isinstance(t, dict)]


def parse_player_response(html_text: str) -> dict[str, Any] | None:
    m = _PLAYER_RESPONSE_RE.search(html_text or "")
    if not m:
        return None
    try:
        data = json.loads(m.group(1))
    except json.JSONDecodeError:
        logger.debug("ytInitialPlayerResponse found but not valid JSON")
        return None
    return data if isinstance(data, dict) else None


@dataclass
class PageContext:
    """
    What the caller could see of the video page.

    player_response:       the player's embedded state (ytInitialPlayerResponse)
    transcript_panel_html: outer HTML of the rendered transcript panel, if opened
    cookies:               the viewer's session cookies for youtube.com
    """

    url: str
    player_response: dict[str, Any] | None = None
    transcript_panel_html: str | None = None
    cookies: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_watch_html(cls, url: str, html_text: str) -> "PageContext":
        return cls(url=url, player_response=parse_player_response(html_text))

    @property
    def caption_tracks(self) -> list[CaptionTrack]:
        return caption_tracks(self.player_response)
