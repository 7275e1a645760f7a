import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Always load .env from the project root (stable, regardless of CWD)
BASE_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=BASE_DIR / ".env", override=False)


def _csv(name: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(name) or default
    return tuple(p.strip() for p in raw.split(",") if p.strip())


@dataclass(frozen=True)
class Settings:
    env: str = os.getenv("ENV", "local")
    port: int = int(os.getenv("PORT", "3000"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    cors_origins: tuple[str, ...] = field(default_factory=lambda: _csv("CORS_ORIGINS", "*"))

    # gemini | huggingface | ollama | openai | auto
    provider: str = os.getenv("STUDY_GUIDE_PROVIDER", "gemini").strip().lower()
    # Probe order for provider=auto (local model first)
    provider_order: tuple[str, ...] = field(
        default_factory=lambda: _csv("STUDY_GUIDE_PROVIDER_ORDER", "ollama,gemini,huggingface,openai")
    )

    # Gemini
    gemini_api_key: str | None = os.getenv("GEMINI_API_KEY")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
    gemini_base_url: str = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com")

    # Hugging Face (OpenAI-compatible router)
    hf_api_token: str | None = os.getenv("HF_TOKEN") or os.getenv("HUGGINGFACE_TOKEN")
    hf_model: str = os.getenv("HF_MODEL", "meta-llama/Llama-3.1-8B-Instruct")
    hf_base_url: str = os.getenv("HF_BASE_URL", "https://router.huggingface.co")

    # Ollama (local)
    ollama_base_url: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    ollama_model: str = os.getenv("OLLAMA_MODEL", "qwen2.5:7b-instruct")

    # OpenAI
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

    llm_timeout_sec: float = float(os.getenv("LLM_TIMEOUT_SEC", "120"))

    # Retry knobs for the model call layer
    llm_max_retries: int = int(os.getenv("LLM_MAX_RETRIES", "3"))
    llm_initial_delay_sec: float = float(os.getenv("LLM_INITIAL_DELAY_SEC", "1.0"))
    llm_backoff_multiplier: float = float(os.getenv("LLM_BACKOFF_MULTIPLIER", "2.0"))

    # Longer transcripts get compressed before prompting
    transcript_max_chars: int = int(os.getenv("TRANSCRIPT_MAX_CHARS", "30000"))


settings = Settings()
