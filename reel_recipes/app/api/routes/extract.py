import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from reel_recipes.app.api.deps import guarded, require_server_api
from reel_recipes.app.core.config import RecipeFormat, Settings
from reel_recipes.app.schemas.api import RecipeTextRequest, make_success_response
from reel_recipes.app.schemas.recipe import ExtractionResult
from reel_recipes.app.services import notifier, recipe_pipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/extract", tags=["extract"])


@router.get("")
async def extract_and_publish(
    background_tasks: BackgroundTasks,
    post_url: Optional[str] = Query(None, alias="postUrl"),
    recipe_format: Optional[RecipeFormat] = Query(None, alias="format"),
    settings: Settings = Depends(require_server_api),
):
    """Extract the recipe from a post caption, publish it to DatoCMS and notify by mail."""
    url = recipe_pipeline.normalize_post_url(post_url)
    record, draft = await guarded(recipe_pipeline.publish_from_post(url, recipe_format or "html"))
    # Runs after the response is sent; failures are logged by the notifier.
    background_tasks.add_task(notifier.notify_published, draft.name)
    return make_success_response(record)


@router.post("")
async def extract_from_text(
    payload: RecipeTextRequest,
    settings: Settings = Depends(require_server_api),
):
    draft = await guarded(
        recipe_pipeline.extract_from_text(payload.recipe_text, payload.format or "structured")
    )
    return make_success_response(ExtractionResult(recipe=draft).model_dump())
