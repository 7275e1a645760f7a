from typing import Any, Callable

import httpx
import pytest

from app.services.llm.base import ModelBackend

SAMPLE_VTT = """WEBVTT
Kind: captions
Language: en

1
00:00:00.000 --> 00:00:02.500
Welcome to the lecture.

2
00:00:02.500 --> 00:00:05.000 align:start position:0%
Today we cover   entropy
and information.
"""


def player_response_with(*tracks: dict[str, Any]) -> dict[str, Any]:
    return {"captions": {"playerCaptionsTracklistRenderer": {"captionTracks": list(tracks)}}}


class Recorder:
    """httpx.MockTransport handler that records every request."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]) -> None:
        self.respond = respond
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


class FakeBackend(ModelBackend):
    """Returns queued replies; an Exception in the queue is raised instead."""

    name = "fake"

    def __init__(self, *replies: Any) -> None:
        super().__init__()
        self.replies = list(replies)
        self.calls: list[tuple[str, Any]] = []

    async def generate(self, prompt: str, schema=None) -> str:
        self.calls.append((prompt, schema))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def sample_vtt() -> str:
    return SAMPLE_VTT
