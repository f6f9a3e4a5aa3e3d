"""Write the API's OpenAPI document to a JSON file.

No database connection is made; the app is built but never started.

Usage:
  python scripts/export_openapi.py [--output openapi.json]
"""

import argparse
import json
import logging
from pathlib import Path

from tasktrack_api.app import create_app
from tasktrack_shared.settings import Settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Export the TaskTrack OpenAPI document")
    parser.add_argument("--output", type=Path, default=Path("openapi.json"))
    args = parser.parse_args()

    # Routes don't depend on configuration; any secret will do.
    app = create_app(Settings(jwt_secret="openapi-export", database_url="sqlite:///:memory:"))
    args.output.write_text(json.dumps(app.openapi(), indent=2) + "\n")
    logger.info(f"Wrote OpenAPI document to {args.output}")


if __name__ == "__main__":
    main()
