import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from reel_recipes.app.api.deps import GATED_PATHS
from reel_recipes.app.api.routes import api_router
from reel_recipes.app.core.config import Settings, get_settings
from reel_recipes.app.core.errors import FeatureDisabled, HTTPError, UpstreamFailure
from reel_recipes.app.schemas.api import make_error_response

logger = logging.getLogger(__name__)


async def http_error_handler(request: Request, exc: HTTPError) -> JSONResponse:
    if isinstance(exc, UpstreamFailure):
        logger.error("Upstream failure: %s", exc.detail, exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content=make_error_response(exc.message))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # The feature gate wins even when the payload can't be decoded.
    settings: Settings = request.app.state.settings
    if not settings.enable_server_api and request.url.path in GATED_PATHS:
        return await http_error_handler(request, FeatureDisabled())

    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", []) if part is not None)
        logger.info("Invalid request field %s: %s", loc or "<body>", err.get("msg", "Invalid value"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=make_error_response("Invalid request payload."),
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Reel Recipes", version="0.1.0")
    app.state.settings = settings
    app.add_exception_handler(HTTPError, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(api_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    if not settings.enable_server_api:
        logger.info("Server-side extraction is disabled (ENABLE_SERVER_API=false)")

    return app


app = create_app()
