from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from reel_recipes.app.api.deps import guarded, require_server_api
from reel_recipes.app.core.config import RecipeFormat, Settings
from reel_recipes.app.schemas.api import VideoRequest, make_success_response
from reel_recipes.app.schemas.recipe import ExtractionResult
from reel_recipes.app.services import notifier, recipe_pipeline

router = APIRouter(prefix="/video", tags=["video"])


@router.get("")
async def extract_video_recipe(
    post_url: Optional[str] = Query(None, alias="postUrl"),
    recipe_format: Optional[RecipeFormat] = Query(None, alias="format"),
    settings: Settings = Depends(require_server_api),
):
    url = recipe_pipeline.normalize_post_url(post_url)
    draft = await guarded(
        recipe_pipeline.extract_from_post(url, recipe_format or settings.recipe_format)
    )
    return make_success_response(ExtractionResult(recipe=draft).model_dump())


@router.post("")
async def process_video(
    payload: VideoRequest,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(require_server_api),
):
    """Extract the recipe for ``postUrl``; with ``publish`` set, also publish it and notify."""
    url = recipe_pipeline.normalize_post_url(payload.post_url)
    recipe_format = payload.format or settings.recipe_format
    if not payload.publish:
        draft = await guarded(recipe_pipeline.extract_from_post(url, recipe_format))
        return make_success_response(ExtractionResult(recipe=draft).model_dump())

    record, draft = await guarded(recipe_pipeline.publish_from_post(url, recipe_format))
    background_tasks.add_task(notifier.notify_published, draft.name)
    return make_success_response(record)
