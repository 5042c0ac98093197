"""Post page fetching and JSON-LD video extraction."""

import json
import logging
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from reel_recipes.app.core.config import get_settings
from reel_recipes.app.core.errors import BadRequest, UpstreamTimeout
from reel_recipes.app.schemas.video import VideoRecord
from reel_recipes.app.services.instagram.url_resolver import build_post_url

logger = logging.getLogger(__name__)


def _request_headers() -> dict:
    settings = get_settings()
    headers = {
        "User-Agent": settings.scraper_user_agent,
        "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }
    if settings.scraper_cookies:
        headers["Cookie"] = settings.scraper_cookies
    return headers


def format_page_json(data: dict) -> VideoRecord:
    """Map an Instagram JSON-LD object onto a VideoRecord."""
    video_list = data["video"]
    if len(video_list) == 0:
        raise BadRequest("This post does not contain a video")

    video = video_list[0]
    caption = video.get("caption")
    if isinstance(caption, str):
        caption = caption.strip() or None

    return VideoRecord(
        username=str(data["author"]["identifier"]["value"]),
        width=str(video.get("width", "")),
        height=str(video.get("height", "")),
        caption=caption,
        download_url=video["contentUrl"],
        thumbnail_url=video.get("thumbnailUrl"),
    )


def extract_video_from_html(html: str) -> Optional[VideoRecord]:
    soup = BeautifulSoup(html, "lxml")
    script = soup.find("script", attrs={"type": "application/ld+json"})
    if script is None:
        logger.info("No JSON-LD block found on post page")
        return None

    raw_json = script.string or script.get_text()
    try:
        data = json.loads(raw_json)
    except json.JSONDecodeError as exc:
        logger.warning("JSON-LD block failed to parse: %s (first 200 chars: %s)", exc, raw_json[:200])
        return None

    if isinstance(data, list):
        data = next((item for item in data if isinstance(item, dict)), None)
    if not isinstance(data, dict):
        logger.warning("JSON-LD block is not an object")
        return None

    try:
        return format_page_json(data)
    except (KeyError, TypeError, IndexError, ValueError) as exc:
        logger.warning("JSON-LD block is missing video fields: %r", exc)
        return None


async def fetch_from_page(page_url: str) -> Optional[VideoRecord]:
    """Fetch a post page and return its video record.

    Returns None when the page can't be read or has no usable JSON-LD data.
    A 404 or a post without a video raises BadRequest, and a timeout raises UpstreamTimeout.
    """
    settings = get_settings()
    timeout = httpx.Timeout(settings.fetch_timeout_seconds, connect=5.0)
    try:
        async with httpx.AsyncClient(
            timeout=timeout, follow_redirects=True, headers=_request_headers()
        ) as client:
            response = await client.get(page_url)
    except httpx.TimeoutException as exc:
        raise UpstreamTimeout("post page", settings.fetch_timeout_seconds) from exc
    except httpx.HTTPError as exc:
        logger.warning("Fetching %s failed: %s", page_url, exc)
        return None

    if response.status_code == 404:
        raise BadRequest("This post page isn't available.")
    if response.status_code != 200:
        logger.warning("Post page %s returned status %s", page_url, response.status_code)
        return None

    return extract_video_from_html(response.text)


async def get_video_info(post_id: str) -> Optional[VideoRecord]:
    return await fetch_from_page(build_post_url(post_id))
