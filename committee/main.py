"""Main application entry point."""

import argparse
import logging

import uvicorn
from dotenv import load_dotenv

from committee.api.app import create_app
from committee.config import get_settings
from committee.services.logging import setup_server_logging

logger = logging.getLogger(__name__)


def main() -> None:
    """Run the API server."""
    load_dotenv()
    settings = get_settings()
    setup_server_logging(settings)

    parser = argparse.ArgumentParser(description="Committee contributions tracker")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    args = parser.parse_args()

    app = create_app(settings)
    logger.info(f"Starting Uvicorn server on {args.host}:{args.port}...")
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
