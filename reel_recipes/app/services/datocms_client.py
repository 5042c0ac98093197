"""Recipe publishing to the DatoCMS Content Management API."""

import hashlib
import logging
import re
import unicodedata
from datetime import date
from typing import Any, Dict, Optional, Union

import httpx

from reel_recipes.app.core.config import get_settings
from reel_recipes.app.core.errors import PublishError, UpstreamTimeout
from reel_recipes.app.schemas.recipe import HtmlRecipe, StructuredRecipe
from reel_recipes.app.services.structured_text import html_to_structured_text

logger = logging.getLogger(__name__)

LOCALE = "en"
IDEMPOTENCY_FIELD = "idempotency_key"

_NON_WORD_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def generate_slug(name: str) -> str:
    """Lowercase, hyphenated ASCII slug, e.g. ``"Pad Thai!" -> "pad-thai"``.

    Names without any ASCII letters or digits get ``recipe-<hash>`` so the slug is never empty.
    """
    ascii_name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    words = _NON_WORD_RE.sub(" ", ascii_name).strip()
    slug = _WHITESPACE_RE.sub("-", words).lower()
    return slug or f"recipe-{idempotency_key(name)[:8]}"


def format_todays_date(today: Optional[date] = None) -> str:
    return (today or date.today()).isoformat()


def idempotency_key(post_id: str) -> str:
    return hashlib.sha256(post_id.encode("utf-8")).hexdigest()[:32]


def _localized(value: Any) -> Dict[str, Any]:
    return {LOCALE: value}


def build_item_attributes(
    draft: Union[HtmlRecipe, StructuredRecipe], post_url: str, today: Optional[date] = None
) -> Dict[str, Any]:
    """Field values for a new recipe record; HTML drafts become structured text documents."""
    if isinstance(draft, HtmlRecipe):
        ingredients: Any = html_to_structured_text(draft.ingredients)
        steps: Any = html_to_structured_text(draft.steps)
    else:
        ingredients = [ingredient.model_dump() for ingredient in draft.ingredients]
        steps = list(draft.steps)

    return {
        "date": format_todays_date(today),
        "inspired_by": post_url,
        "title": _localized(draft.name),
        "slug": _localized(generate_slug(draft.name)),
        "ingredients": _localized(ingredients),
        "todo": _localized(steps),
    }


def _headers(api_token: str) -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {api_token}",
        "Accept": "application/json",
        "Content-Type": "application/vnd.api+json",
        "X-Api-Version": "3",
    }


async def _find_existing_record(client: httpx.AsyncClient, base_url: str, item_type_id: str, key: str) -> Optional[dict]:
    response = await client.get(
        f"{base_url}/items",
        params={
            "filter[type]": item_type_id,
            f"filter[fields][{IDEMPOTENCY_FIELD}][eq]": key,
            "page[limit]": 1,
        },
    )
    response.raise_for_status()
    records = response.json().get("data") or []
    return records[0] if records else None


async def create_recipe_record(
    draft: Union[HtmlRecipe, StructuredRecipe],
    post_url: str,
    post_id: Optional[str] = None,
) -> dict:
    """Create one recipe record and return the CMS representation of it.

    Every call creates a new record unless DATOCMS_DEDUPE is enabled, in which
    case a record already carrying the post's idempotency key is returned instead.
    """
    settings = get_settings()
    if not settings.datocms_api_token:
        raise PublishError("DATOCMS_API_TOKEN is not configured")

    base_url = settings.datocms_base_url.rstrip("/")
    attributes = build_item_attributes(draft, post_url)
    dedupe_key = idempotency_key(post_id) if settings.datocms_dedupe and post_id else None
    if dedupe_key:
        attributes[IDEMPOTENCY_FIELD] = dedupe_key

    payload = {
        "data": {
            "type": "item",
            "attributes": attributes,
            "relationships": {
                "item_type": {
                    "data": {"type": "item_type", "id": settings.datocms_item_type_id},
                }
            },
        }
    }

    timeout = httpx.Timeout(settings.cms_timeout_seconds, connect=10.0)
    try:
        async with httpx.AsyncClient(timeout=timeout, headers=_headers(settings.datocms_api_token)) as client:
            if dedupe_key:
                existing = await _find_existing_record(client, base_url, settings.datocms_item_type_id, dedupe_key)
                if existing:
                    logger.info("Record %s already published for post %s", existing.get("id"), post_id)
                    return existing
            response = await client.post(f"{base_url}/items", json=payload)
        response.raise_for_status()
    except httpx.TimeoutException as exc:
        raise UpstreamTimeout("DatoCMS", settings.cms_timeout_seconds) from exc
    except httpx.HTTPStatusError as exc:
        logger.error(
            "DatoCMS rejected the record with status %s: %s",
            exc.response.status_code,
            exc.response.text[:1000],
        )
        raise PublishError(f"DatoCMS request failed with status {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        raise PublishError(f"DatoCMS request failed: {exc}") from exc

    record = response.json().get("data")
    if not isinstance(record, dict):
        raise PublishError("DatoCMS response did not include the created record")
    logger.info("Created DatoCMS record %s (%s)", record.get("id"), attributes["slug"][LOCALE])
    return record
