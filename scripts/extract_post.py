#!/usr/bin/env python
"""
Extract (and optionally publish) the recipe from an Instagram post without the HTTP API.

Run manually:
    python scripts/extract_post.py https://www.instagram.com/reel/<id>/ --format structured
    python scripts/extract_post.py https://www.instagram.com/p/<id>/ --publish
"""
import argparse
import asyncio
import json
import logging
import sys

from reel_recipes.app.core.config import get_settings
from reel_recipes.app.core.errors import HTTPError
from reel_recipes.app.services import notifier, recipe_pipeline

logger = logging.getLogger("extract_post")


async def run(post_url: str, recipe_format: str, publish: bool) -> dict:
    url = recipe_pipeline.normalize_post_url(post_url)
    if not publish:
        draft = await recipe_pipeline.extract_from_post(url, recipe_format)
        return {"recipe": draft.model_dump()}
    record, draft = await recipe_pipeline.publish_from_post(url, recipe_format)
    await notifier.notify_published(draft.name)
    return record


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("post_url")
    parser.add_argument("--format", choices=["html", "structured"], default=settings.recipe_format)
    parser.add_argument("--publish", action="store_true", help="create a DatoCMS record and send the mail")
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level.upper())
    try:
        result = asyncio.run(run(args.post_url, args.format, args.publish))
    except HTTPError as exc:
        logger.error("%s (status %s)", exc, exc.status_code)
        return 1
    json.dump(result, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
