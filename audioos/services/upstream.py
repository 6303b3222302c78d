"""
Upstream connection to the OpenAI Realtime API.

One connection is opened per relay session; connections are never pooled
or reused, and a failed connection is not retried.
"""

import asyncio
import logging
from typing import Optional

import websockets
from websockets.asyncio.client import ClientConnection
from websockets.exceptions import InvalidStatus, WebSocketException

from audioos.config.models import OpenAIConfig, WebSocketConfig
from audioos.handlers.error_handler import UpstreamConnectionError

module_logger = logging.getLogger(__name__)


class UpstreamConnector:
    """Opens authenticated WebSocket connections to the realtime API.

    Args:
        openai: Upstream URL, model and credentials
        websocket: Keepalive and frame size settings
        logger: Logger for connection events
    """

    def __init__(
        self,
        openai: OpenAIConfig,
        websocket: Optional[WebSocketConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.openai = openai
        self.websocket = websocket or WebSocketConfig()
        self.logger = logger or module_logger

    @property
    def url(self) -> str:
        return self.openai.get_websocket_url()

    async def connect(self) -> ClientConnection:
        """
        Open a new upstream connection.

        Returns:
            The open connection

        Raises:
            UpstreamConnectionError: If credentials are missing, the handshake
                is rejected, or the network connection fails
        """
        try:
            headers = self.openai.get_headers()
        except ValueError as e:
            raise UpstreamConnectionError(str(e)) from e

        self.logger.info(f"Connecting to realtime API: {self.url}")
        try:
            connection = await websockets.connect(
                self.url,
                additional_headers=headers,
                open_timeout=self.openai.connect_timeout,
                ping_interval=self.websocket.ping_interval,
                ping_timeout=self.websocket.ping_timeout,
                close_timeout=self.websocket.close_timeout,
                max_size=self.websocket.max_size,
            )
        except InvalidStatus as e:
            status = e.response.status_code
            raise UpstreamConnectionError(
                f"Realtime API rejected the connection (HTTP {status})"
            ) from e
        except (OSError, asyncio.TimeoutError, TimeoutError, WebSocketException) as e:
            raise UpstreamConnectionError(f"Failed to connect to realtime API: {e}") from e

        self.logger.info("Connected to realtime API")
        return connection
