"""API server entrypoint.

Usage:
  python -m tasktrack_api.runner [--host HOST] [--port PORT]
  tasktrack-api

Configuration comes from the environment (see tasktrack_shared.settings); a
`.env` file in the working directory is loaded first. CLI flags override
HOST and PORT.
"""

import argparse
import logging
import sys

import uvicorn
from dotenv import load_dotenv
from tasktrack_shared.settings import Settings

from tasktrack_api.app import create_app

logger = logging.getLogger(__name__)


def main() -> None:
    """CLI entrypoint: load configuration and serve until interrupted."""
    load_dotenv()

    try:
        settings = Settings.from_env()
    except ValueError as e:
        logging.basicConfig(level=logging.INFO)
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    parser = argparse.ArgumentParser(description="Run the TaskTrack API server")
    parser.add_argument("--host", type=str, default=settings.host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to run on")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    logger.info(f"Starting TaskTrack API on {args.host}:{args.port}")
    logger.info(f"API docs: http://{args.host}:{args.port}/api-docs")

    uvicorn.run(
        create_app(settings),
        host=args.host,
        port=args.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
