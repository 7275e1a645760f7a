from __future__ import annotations

from typing import Any

import openai
from openai import AsyncOpenAI

from app.services.errors import ModelBackendError
from app.services.llm.base import ModelBackend


class OpenAIBackend(ModelBackend):
    name = "openai"

    def __init__(self, api_key: str | None, model: str = "gpt-4o-mini", client: AsyncOpenAI | None = None, **kw) -> None:
        super().__init__(**kw)
        self.api_key = api_key
        self.model = model
        self._openai = client

    async def available(self) -> bool:
        return bool(self.api_key) or self._openai is not None

    async def generate(self, prompt: str, schema: dict[str, Any] | None = None) -> str:
        if self._openai is not None:
            return await self._complete(self._openai, prompt, schema)

        if not self.api_key:
            raise ModelBackendError("OPENAI_API_KEY is missing")
        # One client per call, closed with it. Retries happen in our own retry layer.
        async with AsyncOpenAI(api_key=self.api_key, timeout=self.timeout_s, max_retries=0) as client:
            return await self._complete(client, prompt, schema)

    async def _complete(self, client: AsyncOpenAI, prompt: str, schema: dict[str, Any] | None) -> str:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
        }
        if schema:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            chat = await client.chat.completions.create(**kwargs)
        except openai.APIStatusError as e:
            raise ModelBackendError(f"API Error: {e.status_code} {e.message}", status_code=e.status_code) from e
        except openai.APIError as e:
            raise ModelBackendError(f"openai request failed: {e!r}") from e

        try:
            text = chat.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise ModelBackendError("Invalid API response structure.") from e
        if not isinstance(text, str):
            raise ModelBackendError("Invalid API response structure.")
        return text
