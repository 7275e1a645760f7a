from __future__ import annotations

from typing import Any, AsyncIterator, Awaitable, Callable, Sequence

import httpx
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.core.config import settings
from app.core.youtube_settings import youtube_settings
from app.services.errors import InvalidInput, TranscriptUnavailable
from app.services.llm.base import ModelBackend
from app.services.llm.registry import select_backend
from app.services.page_context import PageContext
from app.services.retry import RetryPolicy
from app.services.study_guides import (
    generate_study_guide,
    modify_text,
    require_modify_input,
    require_transcript,
)
from app.services.transcript import (
    DEFAULT_STRATEGIES,
    Strategy,
    TranscriptResolver,
    fetch_page_context,
    server_side_strategies,
)

router = APIRouter(prefix="/api", tags=["study_guides"])

_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


# -----------------------
# Dependencies
# -----------------------
async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        timeout=youtube_settings.request_timeout_sec,
        follow_redirects=True,
        headers={"User-Agent": _USER_AGENT, "Accept-Language": "en-US,en;q=0.9"},
    ) as client:
        yield client


BackendFactory = Callable[[], Awaitable[ModelBackend]]


def get_backend_factory() -> BackendFactory:
    # Resolved lazily so bad input is rejected before any provider probing
    return lambda: select_backend(settings)


def get_retry_policy() -> RetryPolicy:
    return RetryPolicy.from_settings(settings)


def get_client_strategies() -> Sequence[Strategy]:
    return DEFAULT_STRATEGIES


def get_server_strategies() -> Sequence[Strategy]:
    return server_side_strategies()


# -----------------------
# Transcript
# -----------------------
class TranscriptRequest(BaseModel):
    url: str
    player_response: dict[str, Any] | None = None
    transcript_panel_html: str | None = None
    cookies: dict[str, str] = {}
    # Read the watch page server-side when no player_response was sent
    fetch_page: bool = False


class TranscriptResponse(BaseModel):
    text: str


@router.post("/transcript", response_model=TranscriptResponse)
async def transcript(
    req: TranscriptRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
    strategies: Sequence[Strategy] = Depends(get_client_strategies),
) -> TranscriptResponse:
    url = (req.url or "").strip()
    if not url:
        raise InvalidInput("URL is required")

    player_response = req.player_response
    if player_response is None and req.fetch_page:
        player_response = (await fetch_page_context(url, client)).player_response

    ctx = PageContext(
        url=url,
        player_response=player_response,
        transcript_panel_html=req.transcript_panel_html,
        cookies=dict(req.cookies),
    )
    text = await TranscriptResolver(client, strategies).resolve(ctx)
    if not text:
        raise TranscriptUnavailable()
    return TranscriptResponse(text=text)


# -----------------------
# Study guide
# -----------------------
class GenerateRequest(BaseModel):
    transcript: str | None = None


class GenerateFromUrlRequest(BaseModel):
    url: str | None = None


@router.post("/generate")
async def generate(
    req: GenerateRequest,
    backend_factory: BackendFactory = Depends(get_backend_factory),
    policy: RetryPolicy = Depends(get_retry_policy),
) -> dict[str, Any]:
    transcript_text = require_transcript(req.transcript)
    backend = await backend_factory()
    return await generate_study_guide(transcript_text, backend, policy, max_chars=settings.transcript_max_chars)


@router.post("/generate-guide")
async def generate_from_url(
    req: GenerateFromUrlRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
    strategies: Sequence[Strategy] = Depends(get_server_strategies),
    backend_factory: BackendFactory = Depends(get_backend_factory),
    policy: RetryPolicy = Depends(get_retry_policy),
) -> dict[str, Any]:
    url = (req.url or "").strip()
    if not url:
        raise InvalidInput("YouTube URL is required.")

    ctx = await fetch_page_context(url, client)
    text = await TranscriptResolver(client, strategies).resolve(ctx)
    if not text:
        raise TranscriptUnavailable()

    backend = await backend_factory()
    return await generate_study_guide(text, backend, policy, max_chars=settings.transcript_max_chars)


# -----------------------
# Modify (rewrite | translate | proofread)
# -----------------------
class ModifyRequest(BaseModel):
    text: str | None = None
    action: str | None = None
    target_language: str | None = None


class ModifyResponse(BaseModel):
    modifiedText: str


@router.post("/modify", response_model=ModifyResponse)
async def modify(
    req: ModifyRequest,
    backend_factory: BackendFactory = Depends(get_backend_factory),
    policy: RetryPolicy = Depends(get_retry_policy),
) -> ModifyResponse:
    text, action = require_modify_input(req.text, req.action)
    backend = await backend_factory()
    modified = await modify_text(text, action, backend, policy, target_language=req.target_language)
    return ModifyResponse(modifiedText=modified)


# -----------------------
# perform-action: extension's older name for modify
# -----------------------
class PerformActionRequest(BaseModel):
    text: str | None = None
    action: str | None = None
    # Target language for translate
    context: str | None = None


class PerformActionResponse(BaseModel):
    result: str


@router.post("/perform-action", response_model=PerformActionResponse)
async def perform_action(
    req: PerformActionRequest,
    backend_factory: BackendFactory = Depends(get_backend_factory),
    policy: RetryPolicy = Depends(get_retry_policy),
) -> PerformActionResponse:
    if not req.text or not req.action:
        raise InvalidInput("Text and action are required.")
    text, action = require_modify_input(req.text, req.action)
    backend = await backend_factory()
    result = await modify_text(text, action, backend, policy, target_language=req.context)
    return PerformActionResponse(result=result)
