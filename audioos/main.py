"""
FastAPI server for the Audio OS realtime voice-command relay.

This module initializes the FastAPI application that browser clients connect
to. Each WebSocket connection on the relay path gets its own AudioOSRelay,
which opens a dedicated connection to the OpenAI Realtime API, configures
the ARIA session and pipes frames in both directions until either side
closes.
"""

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from audioos import __version__
from audioos.agents.audio_os_agent import build_session_config
from audioos.bridges.relay import AudioOSRelay
from audioos.config import get_config, validate_configuration
from audioos.config.env_loader import get_environment_info, load_env_file
from audioos.config.logging_config import configure_logging
from audioos.handlers.system_functions import SystemFunctions
from audioos.services.upstream import UpstreamConnector

# Load environment variables before accessing configuration
load_env_file()

# Get centralized configuration
config = get_config()

# Configure logging using centralized config
logger = configure_logging("main", redact_sensitive=config.logging.redact_sensitive)

WS_PATH = config.server.ws_path
session_config = build_session_config(config)

logger.info("Server configuration:")
logger.info(f"  - Relay path: {WS_PATH}")
logger.info(f"  - Model: {config.openai.model}")
logger.info(f"  - Environment: {config.server.environment.value}")
logger.debug(f"Environment info: {get_environment_info()}")
for problem in validate_configuration():
    logger.warning(f"Configuration: {problem}")

app = FastAPI(
    title="Audio OS Relay",
    description="Voice-command relay between Audio OS clients and the OpenAI Realtime API",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.security.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


@app.websocket(WS_PATH)
async def relay_endpoint(websocket: WebSocket):
    """WebSocket endpoint for Audio OS clients.

    Accepts the client connection and runs one relay session on it. The
    session ends when either the client or the upstream connection closes.

    Args:
        websocket (WebSocket): The WebSocket connection from the client
    """
    await websocket.accept()
    logger.info("Client connected to Audio OS")

    if not config.openai.api_key:
        logger.warning("OPENAI_API_KEY is not set; the session will be refused")

    relay = AudioOSRelay(
        websocket,
        UpstreamConnector(config.openai, config.websocket, logger=logger),
        session_config,
        logger=logger,
        system_functions=SystemFunctions(logger=logger),
        dispatch_config=config.dispatch,
    )
    await relay.run()
    logger.info(f"Client session finished: {relay.get_stats()}")


@app.get("/")
async def root():
    """Service status."""
    return {
        "service": "audio-os-relay",
        "status": "running",
        "version": __version__,
        "websocket_path": WS_PATH,
        "model": config.openai.model,
        "api_key_configured": bool(config.openai.api_key),
    }
