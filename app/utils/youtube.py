import re
from typing import Optional

# youtube.com/watch?v=ID, youtu.be/ID, youtube.com/embed/ID, youtube.com/shorts/ID
_PATTERNS = (
    re.compile(r"(?:https?://)?(?:www\.|m\.)?youtube\.com/watch\?(?:.*&)?v=([A-Za-z0-9_-]{11})"),
    re.compile(r"(?:https?://)?youtu\.be/([A-Za-z0-9_-]{11})"),
    re.compile(r"(?:https?://)?(?:www\.)?youtube\.com/(?:embed|shorts|v)/([A-Za-z0-9_-]{11})"),
)
_BARE_ID = re.compile(r"^[A-Za-z0-9_-]{11}$")


def extract_video_id(url: str) -> Optional[str]:
    """
    Retourne l'identifiant YouTube (11 caractères) d'une URL, ou None.
    Un identifiant nu est aussi accepté.
    """
    url = (url or "").strip()
    if _BARE_ID.match(url):
        return url
    for pattern in _PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def canonical_url(youtube_id: str) -> str:
    return f"https://www.youtube.com/watch?v={youtube_id}"
