from typing import Awaitable, TypeVar

from fastapi import Depends, Request

from reel_recipes.app.core.config import Settings
from reel_recipes.app.core.errors import FeatureDisabled, HTTPError, UpstreamFailure

T = TypeVar("T")

# Paths that run the extraction pipeline and are switched off by ENABLE_SERVER_API.
GATED_PATHS = {"/extract", "/video"}


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def require_server_api(settings: Settings = Depends(get_app_settings)) -> Settings:
    if not settings.enable_server_api:
        raise FeatureDisabled()
    return settings


async def guarded(step: Awaitable[T]) -> T:
    """Await a pipeline step, turning unclassified failures into a generic 500."""
    try:
        return await step
    except HTTPError:
        raise
    except Exception as exc:  # noqa: BLE001
        # Logged with its traceback by the HTTPError handler.
        raise UpstreamFailure(f"{type(exc).__name__}: {exc}") from exc
