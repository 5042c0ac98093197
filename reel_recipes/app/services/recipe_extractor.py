"""Structured recipe extraction from caption text via an OpenAI-compatible chat API."""

import json
import logging
import re
from typing import Dict, Type, Union

import httpx
from pydantic import BaseModel, ValidationError

from reel_recipes.app.core.config import RecipeFormat, get_settings
from reel_recipes.app.core.errors import RecipeExtractionError, UpstreamTimeout
from reel_recipes.app.schemas.recipe import HtmlRecipe, StructuredRecipe

logger = logging.getLogger(__name__)

RECIPE_MODELS: Dict[str, Type[BaseModel]] = {
    "html": HtmlRecipe,
    "structured": StructuredRecipe,
}

# Set by the caller after generation, never requested from the model.
_CALLER_FIELDS = {"format", "url"}

_BASE_INSTRUCTIONS = """You are my personal assistant and help me transcribe recipes for my cookbook.
What are the ingredients (with measurements) and steps for the following recipe?
Always convert all measurements to the metric system if that is not already the case.
Convert any temperature given in Fahrenheit to Celsius.
Translate everything to English.

The steps should be separated into parts of the recipe (e.g. "Cream cheese frosting" or "Sauce")
if a part consists of at least two instructions. A step should always mention the necessary
ingredients with measurements to fulfill it, e.g. a step like "Mix all ingredients for the batter"
should instead be "Mix 200g of flour, 100ml of milk and 3 eggs"."""

_HTML_INSTRUCTIONS = """Any ingredient in a step should be formatted in bold using the <strong> tag.
The ingredients and steps are each returned as a single string of valid HTML.
Ingredients are listed in an unordered list <ul>, each item added as an <li> element
in the form '200g Potatoes', with no space between the number and any metric unit.
Headings in the steps are <h4> elements and the steps below them are listed in an ordered list <ol>."""

_STRUCTURED_INSTRUCTIONS = """Return the ingredients as a list of objects with the ingredient "name" and its
"amount" (e.g. {"name": "Potatoes", "amount": "200g"}), with no space between the number and any metric unit.
Return the steps as a list of plain-text instructions in the order they are performed.
When steps belong to a named part of the recipe, start the instruction with the part name followed by a colon."""

_CLOSING = """Do not add any info by yourself! Only output ingredients and steps that are stated in the original recipe.
Recipe: "{recipe_text}\""""


def build_prompt(recipe_text: str, recipe_format: RecipeFormat) -> str:
    format_instructions = _HTML_INSTRUCTIONS if recipe_format == "html" else _STRUCTURED_INSTRUCTIONS
    return "\n\n".join(
        [_BASE_INSTRUCTIONS, format_instructions, _CLOSING.format(recipe_text=recipe_text)]
    )


def recipe_output_schema(recipe_format: RecipeFormat) -> dict:
    """Strict JSON schema for ``{"recipe": {...}}`` in the requested format."""
    model_schema = RECIPE_MODELS[recipe_format].model_json_schema()
    properties = {
        key: value
        for key, value in model_schema["properties"].items()
        if key not in _CALLER_FIELDS
    }
    schema = {
        "type": "object",
        "properties": {
            "recipe": {
                "type": "object",
                "properties": properties,
                "required": list(properties),
                "additionalProperties": False,
            }
        },
        "required": ["recipe"],
        "additionalProperties": False,
    }
    if "$defs" in model_schema:
        schema["$defs"] = model_schema["$defs"]
    return schema


def _strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = re.sub(r"^```[a-zA-Z0-9_-]*\s*", "", cleaned, count=1)
        cleaned = re.sub(r"\s*```$", "", cleaned, count=1).strip()
    return cleaned


def parse_recipe_content(
    content: str, recipe_format: RecipeFormat
) -> Union[HtmlRecipe, StructuredRecipe]:
    """Validate raw model output against the requested recipe format."""
    try:
        data = json.loads(_strip_code_fence(content))
    except json.JSONDecodeError as exc:
        raise RecipeExtractionError(f"LLM response was not valid JSON: {exc}") from exc

    if not isinstance(data, dict) or not isinstance(data.get("recipe"), dict):
        raise RecipeExtractionError("LLM response is missing the recipe object")

    recipe_data = {**data["recipe"], "format": recipe_format}
    try:
        return RECIPE_MODELS[recipe_format].model_validate(recipe_data)
    except ValidationError as exc:
        raise RecipeExtractionError(f"LLM response did not match the recipe schema: {exc}") from exc


def _message_content(data: dict) -> str:
    choices = data.get("choices") or []
    message = (choices[0].get("message") if choices else None) or {}
    if message.get("refusal"):
        raise RecipeExtractionError(f"LLM refused the request: {message['refusal']}")
    content = message.get("content")
    if not content or not isinstance(content, str):
        raise RecipeExtractionError("LLM response missing assistant content")
    return content


async def extract_recipe(
    recipe_text: str, recipe_format: RecipeFormat
) -> Union[HtmlRecipe, StructuredRecipe]:
    """Ask the model for a recipe in ``recipe_format``. Makes exactly one attempt."""
    settings = get_settings()
    if not settings.openai_api_key:
        raise RecipeExtractionError("OPENAI_API_KEY is not configured")

    payload = {
        "model": settings.openai_model,
        "temperature": 0.0,
        "messages": [
            {"role": "user", "content": build_prompt(recipe_text, recipe_format)},
        ],
        "response_format": {
            "type": "json_schema",
            "json_schema": {
                "name": f"recipe_{recipe_format}",
                "strict": True,
                "schema": recipe_output_schema(recipe_format),
            },
        },
    }
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {settings.openai_api_key}",
    }

    timeout = httpx.Timeout(settings.llm_timeout_seconds, connect=10.0)
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(
                f"{settings.openai_base_url.rstrip('/')}/chat/completions",
                json=payload,
                headers=headers,
            )
        response.raise_for_status()
    except httpx.TimeoutException as exc:
        raise UpstreamTimeout("language model", settings.llm_timeout_seconds) from exc
    except httpx.HTTPStatusError as exc:
        logger.error(
            "LLM request failed with status %s: %s",
            exc.response.status_code,
            exc.response.text[:500],
        )
        raise RecipeExtractionError(f"LLM request failed with status {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        raise RecipeExtractionError(f"LLM request failed: {exc}") from exc

    data = response.json()
    if isinstance(data, dict) and "error" in data:
        error_info = data["error"] or {}
        raise RecipeExtractionError(f"LLM error: {error_info.get('message', 'Unknown error')}")

    content = _message_content(data)
    logger.info("LLM raw content (truncated): %s", content[:500])
    return parse_recipe_content(content, recipe_format)
