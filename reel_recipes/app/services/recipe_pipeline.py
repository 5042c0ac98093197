"""Sequential post → recipe → record pipeline shared by the HTTP routes and scripts."""

import logging
from typing import Optional, Tuple, Union
from urllib.parse import unquote

from reel_recipes.app.core.config import RecipeFormat
from reel_recipes.app.core.errors import BadRequest, InvalidInput, NoCaptionAvailable
from reel_recipes.app.schemas.recipe import HtmlRecipe, StructuredRecipe
from reel_recipes.app.services import datocms_client, recipe_extractor
from reel_recipes.app.services.instagram import page_scraper
from reel_recipes.app.services.instagram.url_resolver import resolve_post_id

logger = logging.getLogger(__name__)

Draft = Union[HtmlRecipe, StructuredRecipe]


def normalize_post_url(raw: Optional[str]) -> str:
    if raw is None or not raw.strip():
        raise InvalidInput("Post URL is required")
    return unquote(raw).strip()


def resolve(post_url: str) -> str:
    post_id = resolve_post_id(post_url)
    if not post_id:
        raise InvalidInput("Invalid Post URL")
    return post_id


async def fetch_caption(post_id: str) -> str:
    logger.info("Fetching video info for post %s", post_id)
    video = await page_scraper.get_video_info(post_id)
    if video is None:
        raise BadRequest("Unable to fetch video info for this post.")
    # TODO: fall back to transcribing the video once a transcription service is wired in.
    if not video.caption:
        raise NoCaptionAvailable()
    return video.caption


async def extract_from_text(recipe_text: Optional[str], recipe_format: RecipeFormat) -> Draft:
    if recipe_text is None or not recipe_text.strip():
        raise InvalidInput("Recipe text is required")
    logger.info("Extracting %s recipe from %d characters of text", recipe_format, len(recipe_text))
    return await recipe_extractor.extract_recipe(recipe_text, recipe_format)


async def _extract(post_url: str, recipe_format: RecipeFormat) -> Tuple[str, Draft]:
    post_id = resolve(post_url)
    caption = await fetch_caption(post_id)
    draft = await extract_from_text(caption, recipe_format)
    return post_id, draft.model_copy(update={"url": post_url})


async def extract_from_post(post_url: str, recipe_format: RecipeFormat) -> Draft:
    _, draft = await _extract(post_url, recipe_format)
    return draft


async def publish_from_post(post_url: str, recipe_format: RecipeFormat) -> Tuple[dict, Draft]:
    post_id, draft = await _extract(post_url, recipe_format)
    logger.info("Publishing %s to DatoCMS", draft.name)
    record = await datocms_client.create_recipe_record(draft, post_url, post_id=post_id)
    return record, draft
