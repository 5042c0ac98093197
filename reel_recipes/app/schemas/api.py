from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from reel_recipes.app.core.config import RecipeFormat
from reel_recipes.app.core.errors import GENERIC_ERROR_MESSAGE


class ErrorResponse(BaseModel):
    status: Literal["error"] = "error"
    message: str


def make_success_response(data: Any, message: Optional[str] = None) -> dict:
    body = {"status": "success", "data": data}
    if message:
        body["message"] = message
    return body


def make_error_response(message: str = GENERIC_ERROR_MESSAGE) -> dict:
    return ErrorResponse(message=message).model_dump()


class RecipeTextRequest(BaseModel):
    recipe_text: Optional[str] = Field(None, alias="recipeText")
    format: Optional[RecipeFormat] = None


class VideoRequest(BaseModel):
    post_url: Optional[str] = Field(None, alias="postUrl")
    publish: bool = False
    format: Optional[RecipeFormat] = None
