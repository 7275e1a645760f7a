import re
from urllib.parse import parse_qs, urlencode, urlparse

# Path-segment fallback: /VIDEOID or /shorts/VIDEOID
_PATH_ID_RE = re.compile(r"/(?:shorts/)?([a-zA-Z0-9_-]{6,})")


def extract_video_id(url: str) -> str:
    """
    Supports:
    - https://www.youtube.com/watch?v=VIDEOID   (query parameter wins)
    - https://youtu.be/VIDEOID
    - https://www.youtube.com/shorts/VIDEOID

    Returns "" when nothing usable is found or the URL is malformed.
    """
    try:
        u = urlparse(url or "")
    except ValueError:
        return ""

    q = parse_qs(u.query or "")
    vid = (q.get("v", [""])[0]).strip()
    if vid:
        return vid

    m = _PATH_ID_RE.search(u.path or "")
    return m.group(1) if m else ""


def caption_probe_order(languages) -> list[tuple[str, bool]]:
    """
    Priority list of (language, is_asr) pairs for the timedtext endpoint.

    Language is the outer loop, caption kind the inner one: auto-generated
    "en" is tried before authored "en-US".
    """
    return [(lang, asr) for lang in languages for asr in (False, True)]


def build_timedtext_url(base_url: str, video_id: str, language: str, asr: bool) -> str:
    params = {"v": video_id, "lang": language, "fmt": "vtt"}
    if asr:
        params["kind"] = "asr"
    return f"{base_url}?{urlencode(params)}"

