from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from app.services.errors import ModelBackendError
from app.services.llm.base import ModelBackend

logger = logging.getLogger(__name__)


class OllamaBackend(ModelBackend):
    """
    Local model through Ollama.

    Uses /api/generate (simple) to keep integration stable. When a schema is
    given it goes into "format" so Ollama constrains the output to it.
    """

    name = "ollama"

    def __init__(self, base_url: str, model: str, temperature: float = 0.2, **kw) -> None:
        super().__init__(**kw)
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.temperature = temperature

    async def available(self) -> bool:
        try:
            async with self._client() as client:
                r = await client.get(f"{self.base_url}/api/tags", timeout=2.0)
        except httpx.HTTPError as e:
            logger.debug(f"ollama probe failed: {e!r}")
            return False
        return r.is_success

    async def generate(self, prompt: str, schema: Optional[Dict[str, Any]] = None) -> str:
        payload: Dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": self.temperature,
            },
        }
        if schema:
            payload["format"] = schema

        data = await self._post_json(f"{self.base_url}/api/generate", payload)

        # Ollama returns {"response": "...", ...}
        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise ModelBackendError("Invalid API response structure.")
        return text
