from typing import Optional

from pydantic import BaseModel


class VideoRecord(BaseModel):
    """Video metadata scraped from a post page's JSON-LD block."""

    username: str
    width: str
    height: str
    caption: Optional[str] = None
    download_url: str
    thumbnail_url: Optional[str] = None
