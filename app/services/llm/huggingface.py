from __future__ import annotations

from typing import Any

from app.services.errors import ModelBackendError
from app.services.llm.base import ModelBackend, dig


class HuggingFaceBackend(ModelBackend):
    """Hugging Face inference through the OpenAI-compatible router endpoint."""

    name = "huggingface"

    def __init__(
        self,
        api_token: str | None,
        model: str,
        base_url: str = "https://router.huggingface.co",
        max_tokens: int = 2048,
        **kw,
    ) -> None:
        super().__init__(**kw)
        self.api_token = api_token
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.max_tokens = max_tokens

    async def available(self) -> bool:
        return bool(self.api_token)

    async def generate(self, prompt: str, schema: dict[str, Any] | None = None) -> str:
        if not self.api_token:
            raise ModelBackendError("HF_TOKEN is missing")

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens,
            "temperature": 0.2,
        }
        if schema:
            payload["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": "study_guide", "schema": schema},
            }

        data = await self._post_json(
            f"{self.base_url}/v1/chat/completions",
            payload,
            headers={"Authorization": f"Bearer {self.api_token}"},
        )

        text = dig(data, "choices", 0, "message", "content")
        if not isinstance(text, str):
            raise ModelBackendError("Invalid API response structure.")
        return text
