from __future__ import annotations

import logging
from typing import Any

import httpx

from app.services.errors import ModelBackendError

logger = logging.getLogger(__name__)


class ModelBackend:
    """
    A generative model provider.

    generate() returns the raw text the model produced; it raises
    ModelBackendError on transport failures, non-2xx responses and
    envelopes that carry no text. available() reports whether the backend
    can be used at all (credentials present, local server reachable).
    """

    name = "base"

    def __init__(self, *, timeout_s: float = 120.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.timeout_s = timeout_s
        self.transport = transport

    async def generate(self, prompt: str, schema: dict[str, Any] | None = None) -> str:
        raise NotImplementedError

    async def available(self) -> bool:
        return True

    def _client(self) -> httpx.AsyncClient:
        timeout = httpx.Timeout(self.timeout_s, connect=10.0)
        return httpx.AsyncClient(timeout=timeout, transport=self.transport)

    async def _post_json(self, url: str, payload: dict[str, Any], headers: dict[str, str] | None = None) -> Any:
        try:
            async with self._client() as client:
                r = await client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise ModelBackendError(f"{self.name} request failed: {e!r}") from e

        if not r.is_success:
            raise ModelBackendError(f"API Error: {r.status_code} {r.reason_phrase}", status_code=r.status_code)

        try:
            return r.json()
        except ValueError as e:
            raise ModelBackendError(f"{self.name} returned a non-JSON envelope") from e


def dig(data: Any, *path: Any) -> Any:
    """Walk nested dicts/lists; None as soon as a step is missing."""
    cur = data
    for key in path:
        if isinstance(key, int):
            if not isinstance(cur, list) or not -len(cur) <= key < len(cur):
                return None
        elif not isinstance(cur, dict):
            return None
        cur = cur[key] if isinstance(key, int) else cur.get(key)
    return cur
