"""Instagram post resolution and page scraping."""

from reel_recipes.app.services.instagram.page_scraper import fetch_from_page, get_video_info
from reel_recipes.app.services.instagram.url_resolver import build_post_url, resolve_post_id

__all__ = [
    "build_post_url",
    "fetch_from_page",
    "get_video_info",
    "resolve_post_id",
]
