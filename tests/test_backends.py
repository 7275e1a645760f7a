import asyncio
import json
from types import SimpleNamespace

import httpx
import pytest

from app.core.config import Settings
from app.services.errors import ModelBackendError
from app.services.guide_schema import STUDY_GUIDE_SCHEMA
from app.services.llm.gemini import GeminiBackend, to_gemini_schema
from app.services.llm.huggingface import HuggingFaceBackend
from app.services.llm.ollama_client import OllamaBackend
from app.services.llm import openai_client
from app.services.llm.openai_client import OpenAIBackend
from app.services.llm.registry import build_backend, select_backend
from conftest import Recorder


def _json(request: httpx.Request) -> dict:
    return json.loads(request.content)


# -----------------------
# Gemini
# -----------------------
def test_gemini_sends_schema_and_reads_first_candidate():
    rec = Recorder(lambda r: httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": '{"ok": 1}'}]}}]}))
    backend = GeminiBackend("k-123", model="gemini-test", base_url="https://gl.example", transport=httpx.MockTransport(rec))

    text = asyncio.run(backend.generate("make a guide", STUDY_GUIDE_SCHEMA))

    assert text == '{"ok": 1}'
    req = rec.requests[0]
    assert str(req.url) == "https://gl.example/v1beta/models/gemini-test:generateContent"
    assert req.headers["x-goog-api-key"] == "k-123"
    body = _json(req)
    assert body["contents"][0]["parts"][0]["text"] == "make a guide"
    assert body["generationConfig"]["responseMimeType"] == "application/json"
    assert body["generationConfig"]["responseSchema"]["type"] == "OBJECT"


def test_gemini_without_schema_has_no_generation_config():
    rec = Recorder(lambda r: httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "hola"}]}}]}))
    backend = GeminiBackend("k", transport=httpx.MockTransport(rec))
    assert asyncio.run(backend.generate("translate")) == "hola"
    assert "generationConfig" not in _json(rec.requests[0])


def test_gemini_malformed_envelope():
    rec = Recorder(lambda r: httpx.Response(200, json={"candidates": []}))
    backend = GeminiBackend("k", transport=httpx.MockTransport(rec))
    with pytest.raises(ModelBackendError, match="Invalid API response structure"):
        asyncio.run(backend.generate("x"))


def test_gemini_non_2xx():
    rec = Recorder(lambda r: httpx.Response(429))
    backend = GeminiBackend("k", transport=httpx.MockTransport(rec))
    with pytest.raises(ModelBackendError) as ei:
        asyncio.run(backend.generate("x"))
    assert ei.value.status_code == 429


def test_gemini_missing_key():
    backend = GeminiBackend(None)
    assert asyncio.run(backend.available()) is False
    with pytest.raises(ModelBackendError, match="GEMINI_API_KEY"):
        asyncio.run(backend.generate("x"))


def test_to_gemini_schema_uppercases_types_only():
    out = to_gemini_schema({"type": "object", "properties": {"type": {"type": "string", "description": "type"}}})
    assert out == {"type": "OBJECT", "properties": {"type": {"type": "STRING", "description": "type"}}}


# -----------------------
# Hugging Face
# -----------------------
def test_huggingface_chat_completion():
    rec = Recorder(lambda r: httpx.Response(200, json={"choices": [{"message": {"content": "answer"}}]}))
    backend = HuggingFaceBackend("hf_tok", model="org/model", base_url="https://hf.example", transport=httpx.MockTransport(rec))

    assert asyncio.run(backend.generate("q", STUDY_GUIDE_SCHEMA)) == "answer"
    req = rec.requests[0]
    assert str(req.url) == "https://hf.example/v1/chat/completions"
    assert req.headers["authorization"] == "Bearer hf_tok"
    body = _json(req)
    assert body["model"] == "org/model"
    assert body["messages"] == [{"role": "user", "content": "q"}]
    assert body["response_format"]["json_schema"]["schema"] == STUDY_GUIDE_SCHEMA


def test_huggingface_transport_error():
    def respond(request):
        raise httpx.ReadTimeout("slow", request=request)

    backend = HuggingFaceBackend("tok", model="m", transport=httpx.MockTransport(Recorder(respond)))
    with pytest.raises(ModelBackendError, match="request failed"):
        asyncio.run(backend.generate("q"))


# -----------------------
# Ollama
# -----------------------
def test_ollama_generate_and_probe():
    def respond(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/tags":
            return httpx.Response(200, json={"models": []})
        return httpx.Response(200, json={"response": " local text "})

    rec = Recorder(respond)
    backend = OllamaBackend("http://ollama.local:11434/", model="qwen", transport=httpx.MockTransport(rec))

    assert asyncio.run(backend.available()) is True
    assert asyncio.run(backend.generate("p", {"type": "object"})) == " local text "
    body = _json(rec.requests[-1])
    assert body["model"] == "qwen"
    assert body["stream"] is False
    assert body["format"] == {"type": "object"}


def test_ollama_unreachable_is_unavailable():
    def respond(request):
        raise httpx.ConnectError("refused", request=request)

    backend = OllamaBackend("http://ollama.local:11434", model="m", transport=httpx.MockTransport(Recorder(respond)))
    assert asyncio.run(backend.available()) is False


# -----------------------
# OpenAI
# -----------------------
class _FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))])


def test_openai_backend_uses_json_mode_with_schema():
    completions = _FakeCompletions('{"a": 1}')
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    backend = OpenAIBackend(None, model="gpt-test", client=client)

    assert asyncio.run(backend.available()) is True
    assert asyncio.run(backend.generate("p", STUDY_GUIDE_SCHEMA)) == '{"a": 1}'
    assert completions.kwargs["model"] == "gpt-test"
    assert completions.kwargs["response_format"] == {"type": "json_object"}


def test_openai_backend_empty_content_is_malformed():
    client = SimpleNamespace(chat=SimpleNamespace(completions=_FakeCompletions(None)))
    with pytest.raises(ModelBackendError):
        asyncio.run(OpenAIBackend(None, client=client).generate("p"))


class _ClosingClient:
    built: list["_ClosingClient"] = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.closed = False
        self.chat = SimpleNamespace(completions=_FakeCompletions("reply"))
        _ClosingClient.built.append(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.closed = True


def test_openai_backend_closes_the_client_it_builds(monkeypatch):
    _ClosingClient.built.clear()
    monkeypatch.setattr(openai_client, "AsyncOpenAI", _ClosingClient)
    backend = OpenAIBackend("sk-test", model="gpt-test")

    assert asyncio.run(backend.generate("p")) == "reply"
    assert asyncio.run(backend.generate("q")) == "reply"

    assert len(_ClosingClient.built) == 2
    assert all(c.closed for c in _ClosingClient.built)
    assert _ClosingClient.built[0].kwargs["max_retries"] == 0


def test_openai_backend_without_key():
    with pytest.raises(ModelBackendError, match="OPENAI_API_KEY"):
        asyncio.run(OpenAIBackend(None).generate("p"))


# -----------------------
# Registry
# -----------------------
def test_build_backend_by_name():
    s = Settings(provider="gemini", gemini_api_key="k")
    assert isinstance(build_backend("gemini", s), GeminiBackend)
    assert isinstance(build_backend("HuggingFace", s), HuggingFaceBackend)
    assert isinstance(build_backend("ollama", s), OllamaBackend)
    assert isinstance(build_backend("openai", s), OpenAIBackend)
    with pytest.raises(ValueError):
        build_backend("window-ai", s)


def test_select_backend_explicit_provider():
    s = Settings(provider="huggingface", hf_api_token="t")
    assert isinstance(asyncio.run(select_backend(s)), HuggingFaceBackend)


def test_select_backend_auto_skips_unavailable():
    def respond(request):
        raise httpx.ConnectError("no ollama", request=request)

    s = Settings(
        provider="auto",
        provider_order=("ollama", "gemini", "huggingface"),
        gemini_api_key=None,
        hf_api_token="hf",
    )
    backend = asyncio.run(select_backend(s, transport=httpx.MockTransport(Recorder(respond))))
    assert isinstance(backend, HuggingFaceBackend)


def test_select_backend_auto_with_nothing_available():
    def respond(request):
        return httpx.Response(503)

    s = Settings(provider="auto", provider_order=("ollama", "gemini"), gemini_api_key=None)
    with pytest.raises(ModelBackendError, match="No model backend available"):
        asyncio.run(select_backend(s, transport=httpx.MockTransport(Recorder(respond))))
