import re
from typing import Optional

_POST_URL_RE = re.compile(
    r"^(?:https?://)?(?:www\.|m\.)?(?:instagram\.com|instagr\.am)/"
    r"(?:[A-Za-z0-9_.]+/)?(?:p|reel|reels|tv)/([A-Za-z0-9_-]+)/?(?:[?#].*)?$",
    re.IGNORECASE,
)

POST_PAGE_URL = "https://www.instagram.com/p/{post_id}/"


def resolve_post_id(url: Optional[str]) -> Optional[str]:
    """Return the post shortcode for an Instagram post or reel URL, or None if it doesn't match."""
    if not url:
        return None
    match = _POST_URL_RE.match(url.strip())
    if not match:
        return None
    return match.group(1)


def build_post_url(post_id: str) -> str:
    return POST_PAGE_URL.format(post_id=post_id)
