"""
Run script for starting the Audio OS relay server.

This script configures and starts the FastAPI server with WebSocket settings
suited to streaming microphone and speech audio through the relay.

Usage:
    python run.py [--port PORT] [--host HOST] [--log-level LEVEL]
"""

import argparse
import os
import sys

import uvicorn

from audioos.config import get_config, load_env_file
from audioos.config.logging_config import configure_logging

load_env_file()

# Configure logging
logger = configure_logging("run")


def parse_args(argv=None):
    """Parse command line arguments."""
    config = get_config()
    parser = argparse.ArgumentParser(description="Start the Audio OS relay server")
    parser.add_argument(
        "--port",
        type=int,
        default=config.server.port,
        help="Port to run the server on (default: 8000 or PORT env var)",
    )
    parser.add_argument(
        "--host",
        default=config.server.host,
        help="Host to bind the server to (default: 0.0.0.0 or HOST env var)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO or LOG_LEVEL env var)",
    )
    return parser.parse_args(argv)


def main():
    """Main entry point for starting the server."""
    args = parse_args()
    config = get_config()

    if not config.openai.api_key:
        logger.error("OPENAI_API_KEY environment variable not set")
        print("\nError: OPENAI_API_KEY environment variable is required")
        print("Set it in your shell or in a .env file next to run.py.")
        sys.exit(1)

    logger.info("=== Server Configuration ===")
    logger.info(f"Host: {args.host}")
    logger.info(f"Port: {args.port}")
    logger.info(f"Relay path: {config.server.ws_path}")
    logger.info(f"Log level: {args.log_level}")
    logger.info(f"Environment: {config.server.environment.value}")
    logger.info("=========================")

    server_config = uvicorn.Config(
        "audioos.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
        http="h11",
        access_log=config.server.access_log,
        reload=config.is_development(),
        ws_ping_interval=config.websocket.ping_interval,
        ws_ping_timeout=config.websocket.ping_timeout,
        ws_max_size=config.websocket.max_size,
        workers=1,
        loop="asyncio",
    )

    logger.info("Starting server with uvicorn...")
    try:
        uvicorn.Server(server_config).run()
    except OSError as e:
        logger.error(f"Failed to start server: {e}")
        print(f"\nError: Failed to start server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
