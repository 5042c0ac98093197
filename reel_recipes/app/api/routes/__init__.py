from fastapi import APIRouter

from reel_recipes.app.api.routes import extract, video

api_router = APIRouter()
api_router.include_router(extract.router)
api_router.include_router(video.router)
