from __future__ import annotations

from typing import Any

from app.services.errors import ModelBackendError
from app.services.llm.base import ModelBackend, dig


def to_gemini_schema(schema: Any) -> Any:
    """Gemini's responseSchema spells JSON types in upper case (OBJECT, STRING, ...)."""
    if isinstance(schema, dict):
        out = {}
        for k, v in schema.items():
            if k == "type" and isinstance(v, str):
                out[k] = v.upper()
            else:
                out[k] = to_gemini_schema(v)
        return out
    if isinstance(schema, list):
        return [to_gemini_schema(v) for v in schema]
    return schema


class GeminiBackend(ModelBackend):
    name = "gemini"

    def __init__(
        self,
        api_key: str | None,
        model: str = "gemini-1.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com",
        **kw,
    ) -> None:
        super().__init__(**kw)
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")

    async def available(self) -> bool:
        return bool(self.api_key)

    async def generate(self, prompt: str, schema: dict[str, Any] | None = None) -> str:
        if not self.api_key:
            raise ModelBackendError("GEMINI_API_KEY is missing")

        url = f"{self.base_url}/v1beta/models/{self.model}:generateContent"
        payload: dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if schema:
            payload["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": to_gemini_schema(schema),
            }

        data = await self._post_json(url, payload, headers={"x-goog-api-key": self.api_key})

        text = dig(data, "candidates", 0, "content", "parts", 0, "text")
        if not isinstance(text, str):
            raise ModelBackendError("Invalid API response structure.")
        return text
