from __future__ import annotations

import logging

from app.core.config import Settings
from app.services.errors import ModelBackendError
from app.services.llm.base import ModelBackend
from app.services.llm.gemini import GeminiBackend
from app.services.llm.huggingface import HuggingFaceBackend
from app.services.llm.ollama_client import OllamaBackend
from app.services.llm.openai_client import OpenAIBackend

logger = logging.getLogger(__name__)

PROVIDERS = ("gemini", "huggingface", "ollama", "openai")


def build_backend(name: str, s: Settings, **kw) -> ModelBackend:
    name = (name or "").strip().lower()
    kw.setdefault("timeout_s", s.llm_timeout_sec)

    if name == "gemini":
        return GeminiBackend(s.gemini_api_key, model=s.gemini_model, base_url=s.gemini_base_url, **kw)
    if name == "huggingface":
        return HuggingFaceBackend(s.hf_api_token, model=s.hf_model, base_url=s.hf_base_url, **kw)
    if name == "ollama":
        return OllamaBackend(s.ollama_base_url, model=s.ollama_model, **kw)
    if name == "openai":
        return OpenAIBackend(s.openai_api_key, model=s.openai_model, **kw)

    raise ValueError(f"Unknown model provider: {name!r} (use {'|'.join(PROVIDERS)}|auto)")


async def select_backend(s: Settings, **kw) -> ModelBackend:
    """
    provider=<name> builds that backend directly. provider=auto probes
    provider_order and returns the first backend that reports itself usable.
    """
    if s.provider != "auto":
        return build_backend(s.provider, s, **kw)

    for name in s.provider_order:
        try:
            backend = build_backend(name, s, **kw)
        except ValueError as e:
            logger.warning(str(e))
            continue
        if await backend.available():
            logger.info(f"using model backend {name!r}")
            return backend
        logger.debug(f"model backend {name!r} not available")

    raise ModelBackendError("No model backend available. Configure an API key or start Ollama.")
