import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _languages() -> tuple[str, ...]:
    raw = os.getenv("YOUTUBE_CAPTION_LANGS") or "en,en-US,en-GB,en-IN"
    return tuple(p.strip() for p in raw.split(",") if p.strip())


@dataclass(frozen=True)
class YouTubeSettings:
    # Languages probed against the timedtext endpoint, in priority order
    caption_languages: tuple[str, ...] = field(default_factory=_languages)

    timedtext_url: str = os.getenv("YOUTUBE_TIMEDTEXT_URL", "https://www.youtube.com/api/timedtext")
    watch_url: str = os.getenv("YOUTUBE_WATCH_URL", "https://www.youtube.com/watch")

    request_timeout_sec: float = float(os.getenv("YOUTUBE_TIMEOUT_SEC", "15"))

    # Optional: proxy URL, e.g. http://127.0.0.1:7890
    proxy_url: str | None = os.getenv("YOUTUBE_PROXY_URL")

    # Whether server-side resolution may fall back to youtube-transcript-api
    enable_transcript_api_fallback: bool = os.getenv("YOUTUBE_ENABLE_TRANSCRIPT_API_FALLBACK", "1") == "1"


youtube_settings = YouTubeSettings()
