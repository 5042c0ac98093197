#!/usr/bin/env python
"""
Run the Reel Recipes API.

Run manually:
    python scripts/run_server.py --port 8000
"""
import argparse
import logging

import uvicorn

from reel_recipes.app.core.config import get_settings


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the Reel Recipes API")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    uvicorn.run("reel_recipes.app.main:app", host=args.host, port=args.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
