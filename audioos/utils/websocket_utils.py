"""
Shared WebSocket utilities for the Audio OS relay.

The relay talks to two kinds of socket: the client leg is a Starlette
WebSocket (``send_text``/``client_state``) and the upstream leg is a
``websockets`` client connection (``send``/``state``). These helpers hide
the difference.
"""

import json
import logging
from typing import Any, Dict, Optional, Union

from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)


class WebSocketUtils:
    """Shared WebSocket utility functions."""

    @staticmethod
    def is_websocket_closed(websocket: Any) -> bool:
        """
        Check if a WebSocket connection is closed or closing.

        Args:
            websocket: Starlette WebSocket, websockets connection, or None

        Returns:
            bool: True if no further frames can be sent
        """
        if not websocket:
            return True

        client_state = getattr(websocket, "client_state", None)
        if isinstance(client_state, WebSocketState):
            application_state = getattr(websocket, "application_state", None)
            return (
                client_state == WebSocketState.DISCONNECTED
                or application_state == WebSocketState.DISCONNECTED
            )

        state = getattr(websocket, "state", None)
        state_name = getattr(state, "name", None)
        if state_name is not None:
            return state_name in ("CLOSED", "CLOSING")

        if getattr(websocket, "close_code", None) is not None:
            return True

        return bool(getattr(websocket, "closed", False))

    @staticmethod
    async def send_raw(websocket: Any, message: Union[str, bytes]) -> None:
        """Send a frame unchanged, text or binary. Errors propagate."""
        if hasattr(websocket, "send_text"):
            if isinstance(message, bytes):
                await websocket.send_bytes(message)
            else:
                await websocket.send_text(message)
        else:
            await websocket.send(message)

    @staticmethod
    async def safe_send_event(
        websocket: Any,
        event: Union[Dict[str, Any], str],
        logger_instance: Optional[logging.Logger] = None,
    ) -> bool:
        """
        Safely send an event to a WebSocket connection.

        Args:
            websocket: WebSocket connection
            event: Event dict, or an already-serialized JSON string
            logger_instance: Logger for error reporting

        Returns:
            bool: True if sent successfully, False otherwise
        """
        log = logger_instance or logger
        if WebSocketUtils.is_websocket_closed(websocket):
            log.warning("Attempted to send on closed WebSocket; event not sent.")
            return False

        message = event if isinstance(event, str) else json.dumps(event)
        try:
            await WebSocketUtils.send_raw(websocket, message)
            return True
        except Exception as e:
            log.error(f"Error sending event: {e}")
            return False

    @staticmethod
    async def safe_close(
        websocket: Any,
        code: int = 1000,
        reason: str = "",
        logger_instance: Optional[logging.Logger] = None,
    ) -> None:
        """Close a WebSocket if it is still open, logging any failure."""
        if WebSocketUtils.is_websocket_closed(websocket):
            return
        try:
            await websocket.close(code=code, reason=reason)
        except Exception as e:
            (logger_instance or logger).error(f"Error closing WebSocket: {e}")

    @staticmethod
    def format_event_log(event_type: str, data: Any) -> str:
        """Format an event for logging, truncating large payloads."""
        data_str = str(data)
        if len(data_str) > 200:
            data_str = data_str[:200] + "..."
        return f"Event[{event_type}]: {data_str}"
