from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Sequence

import httpx
from bs4 import BeautifulSoup
from youtube_transcript_api import YouTubeTranscriptApi
from youtube_transcript_api.formatters import TextFormatter
from youtube_transcript_api.proxies import GenericProxyConfig

from app.core.youtube_settings import youtube_settings
from app.services.errors import TRANSCRIPT_GUIDANCE
from app.services.page_context import PageContext
from app.services.timedtext import normalize_space, strip_timed_text
from app.services.waterfall import first_non_empty_async
from app.services.youtube import build_timedtext_url, caption_probe_order, extract_video_id

logger = logging.getLogger(__name__)

Strategy = Callable[[PageContext, httpx.AsyncClient], Awaitable[str]]

# Transcript panel selectors, oldest layout first
LEGACY_SEGMENT_SELECTORS = "ytd-transcript-segment-renderer .segment-text"
SEGMENT_SELECTORS = (
    "yt-formatted-string.segment-text, "
    "ytd-transcript-segment-renderer #segment-text, "
    "ytd-transcript-segment-renderer yt-formatted-string"
)
PANEL_CONTAINER_SELECTORS = "ytd-transcript-renderer, ytd-engagement-panel-section-list-renderer"


# -----------------------------
# Strategy 1: embedded player metadata
# -----------------------------
async def player_metadata_strategy(ctx: PageContext, client: httpx.AsyncClient) -> str:
    tracks = ctx.caption_tracks
    if not tracks:
        return ""

    track = tracks[0]
    if not track.base_url:
        return ""

    # Public caption URL: no viewer cookies, nor any the watch page set
    client.cookies.clear()
    url = httpx.URL(track.base_url).copy_set_param("fmt", "vtt")
    resp = await client.get(url)
    if not resp.is_success:
        logger.info(f"caption track fetch returned {resp.status_code} (lang={track.language_code})")
        return ""
    return strip_timed_text(resp.text)


# -----------------------------
# Strategy 2: direct timedtext endpoint
# -----------------------------
async def timedtext_strategy(ctx: PageContext, client: httpx.AsyncClient) -> str:
    video_id = extract_video_id(ctx.url)
    if not video_id:
        return ""

    for lang, asr in caption_probe_order(youtube_settings.caption_languages):
        url = build_timedtext_url(youtube_settings.timedtext_url, video_id, lang, asr)
        try:
            # Viewer session so restricted captions come through
            resp = await client.get(url, headers=_cookie_header(ctx.cookies))
        except httpx.HTTPError as e:
            logger.debug(f"timedtext {lang} asr={asr} failed: {e!r}")
            continue
        if not resp.is_success:
            continue
        text = strip_timed_text(resp.text)
        if text:
            logger.info(f"timedtext hit for {video_id} (lang={lang}, asr={asr})")
            return text
    return ""


def _cookie_header(cookies: dict[str, str]) -> dict[str, str]:
    if not cookies:
        return {}
    return {"Cookie": "; ".join(f"{k}={v}" for k, v in cookies.items())}


# -----------------------------
# Strategy 3: rendered transcript panel
# -----------------------------
def scrape_transcript_panel(panel_html: str | None) -> str:
    if not panel_html:
        return ""

    soup = BeautifulSoup(panel_html, "html.parser")

    def collect(els) -> str:
        texts = [e.get_text(" ", strip=True) for e in els]
        return normalize_space(" ".join(t for t in texts if t))

    legacy = soup.select(LEGACY_SEGMENT_SELECTORS)
    if legacy:
        return collect(legacy)

    current = soup.select(SEGMENT_SELECTORS)
    if current:
        return collect(current)

    host = soup.select_one(PANEL_CONTAINER_SELECTORS)
    return normalize_space(host.get_text(" ", strip=True)) if host else ""


async def transcript_panel_strategy(ctx: PageContext, client: httpx.AsyncClient) -> str:
    return scrape_transcript_panel(ctx.transcript_panel_html)


# -----------------------------
# Strategy 4 (server-side only): youtube-transcript-api
# -----------------------------
def _fetch_with_transcript_api(video_id: str, languages: Sequence[str]) -> str:
    proxy_config = None
    if youtube_settings.proxy_url:
        proxy_config = GenericProxyConfig(
            http_url=youtube_settings.proxy_url,
            https_url=youtube_settings.proxy_url,
        )

    api = YouTubeTranscriptApi(proxy_config=proxy_config)
    fetched = api.fetch(video_id, languages=list(languages))
    return TextFormatter().format_transcript(fetched)


async def transcript_api_strategy(ctx: PageContext, client: httpx.AsyncClient) -> str:
    video_id = extract_video_id(ctx.url)
    if not video_id:
        return ""
    text = await asyncio.to_thread(_fetch_with_transcript_api, video_id, youtube_settings.caption_languages)
    return normalize_space(text)


DEFAULT_STRATEGIES: tuple[Strategy, ...] = (
    player_metadata_strategy,
    timedtext_strategy,
    transcript_panel_strategy,
)


def server_side_strategies() -> tuple[Strategy, ...]:
    if youtube_settings.enable_transcript_api_fallback:
        return DEFAULT_STRATEGIES + (transcript_api_strategy,)
    return DEFAULT_STRATEGIES


# -----------------------------
# Resolver
# -----------------------------
class TranscriptResolver:
    """
    Runs the strategies in order and returns the first non-empty transcript.

    Strategies never stop the waterfall: network errors, bad URLs and
    missing panels all read as "no result". "" means no transcript.
    """

    def __init__(self, client: httpx.AsyncClient, strategies: Sequence[Strategy] = DEFAULT_STRATEGIES) -> None:
        self.client = client
        self.strategies = tuple(strategies)

    async def resolve(self, ctx: PageContext) -> str:
        text = await first_non_empty_async(self.strategies, ctx, self.client, empty="")
        text = normalize_space(text or "")
        if not text:
            logger.warning(f"no transcript found for {ctx.url!r}")
        return text


async def resolve_transcript(
    ctx: PageContext,
    client: httpx.AsyncClient,
    strategies: Sequence[Strategy] = DEFAULT_STRATEGIES,
) -> dict[str, Any]:
    """Returns {"text": ...} or {"error": TRANSCRIPT_GUIDANCE}."""
    text = await TranscriptResolver(client, strategies).resolve(ctx)
    if not text:
        return {"error": TRANSCRIPT_GUIDANCE}
    return {"text": text}


async def fetch_page_context(url: str, client: httpx.AsyncClient) -> PageContext:
    """
    Build a PageContext for a bare video URL by reading the watch page.
    Any failure leaves a context with just the URL.
    """
    video_id = extract_video_id(url)
    if not video_id:
        return PageContext(url=url)

    try:
        resp = await client.get(youtube_settings.watch_url, params={"v": video_id})
    except httpx.HTTPError as e:
        logger.info(f"watch page fetch failed for {video_id}: {e!r}")
        return PageContext(url=url)

    if not resp.is_success:
        logger.info(f"watch page for {video_id} returned {resp.status_code}")
        return PageContext(url=url)

    return PageContext.from_watch_html(url, resp.text)
