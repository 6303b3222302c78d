"""Relay between an Audio OS client and the OpenAI Realtime API.

Each client WebSocket gets its own AudioOSRelay, which owns exactly one
upstream connection for the lifetime of the session. The relay:

- opens the upstream connection and sends the static session.update before
  reading anything from the client
- forwards every client frame upstream and every upstream frame to the
  client unchanged, each direction in its own coroutine
- dispatches completed tool calls, sends their output upstream followed by
  response.create, and broadcasts a system.action frame to the client
- tears down both legs when either one closes; there is no reconnect

Nothing is shared between relay instances.
"""

import asyncio
import json
import logging
import uuid
from enum import Enum
from typing import Any, Dict, Optional, Union

from websockets.exceptions import ConnectionClosed, ConnectionClosedOK

from audioos.agents.audio_os_agent import register_audio_os_functions
from audioos.config.models import DispatchConfig
from audioos.handlers.error_handler import (
    ErrorContext,
    ErrorHandler,
    ErrorSeverity,
    UpstreamConnectionError,
)
from audioos.handlers.event_router import EventRouter
from audioos.handlers.function_handler import FunctionHandler
from audioos.handlers.system_functions import SystemFunctions
from audioos.models.openai_api import (
    FunctionCallArgumentsDoneEvent,
    ServerEventType,
    SessionConfig,
    SessionUpdateEvent,
    parse_upstream_event,
)
from audioos.services.upstream import UpstreamConnector
from audioos.utils.websocket_utils import WebSocketUtils

module_logger = logging.getLogger(__name__)

CLOSE_NORMAL = 1000
CLOSE_SERVER_ERROR = 1011


class RelayState(str, Enum):
    """Lifecycle of a relay session."""

    CONNECTING = "connecting"
    ACTIVE = "active"
    CLOSING = "closing"
    CLOSED = "closed"


class AudioOSRelay:
    """Bridge one client WebSocket to one upstream realtime connection.

    Attributes:
        client_websocket: Accepted Starlette WebSocket for the client leg
        upstream_websocket: Upstream connection, None until connected
        state (RelayState): Current lifecycle state
        function_handler (FunctionHandler): Tool dispatcher for this session
        event_router (EventRouter): Routes inspected upstream events to side effects
        error_handler (ErrorHandler): Records failures for this session
        active_response_id (Optional[str]): Id of the response currently streaming
    """

    def __init__(
        self,
        client_websocket,
        connector: UpstreamConnector,
        session_config: SessionConfig,
        logger: Optional[logging.Logger] = None,
        system_functions: Optional[SystemFunctions] = None,
        dispatch_config: Optional[DispatchConfig] = None,
    ):
        self.session_id = str(uuid.uuid4())
        self.client_websocket = client_websocket
        self.upstream_websocket = None
        self.connector = connector
        self.session_config = session_config
        self.logger = logger or module_logger
        self.state = RelayState.CONNECTING
        self.active_response_id: Optional[str] = None

        self._client_disconnected = False
        self.frames_from_client = 0
        self.frames_from_upstream = 0
        self.function_calls = 0

        dispatch_config = dispatch_config or DispatchConfig()
        self.function_handler = FunctionHandler(
            logger=self.logger,
            function_timeout=dispatch_config.function_timeout,
            call_history_size=dispatch_config.call_history_size,
        )
        register_audio_os_functions(
            self.function_handler, system_functions or SystemFunctions(logger=self.logger)
        )

        self.error_handler = ErrorHandler(self.logger)

        self.event_router = EventRouter(self.logger)
        self.event_router.register_handler(
            ServerEventType.RESPONSE_FUNCTION_CALL_ARGUMENTS_DONE,
            self.handle_function_call,
        )
        self.event_router.register_handler(
            ServerEventType.RESPONSE_CREATED, self._handle_response_created
        )
        self.event_router.register_handler(
            ServerEventType.RESPONSE_DONE, self._handle_response_done
        )
        self.event_router.register_handler(
            ServerEventType.SESSION_CREATED, self._handle_session_created
        )

    @property
    def is_active(self) -> bool:
        return self.state == RelayState.ACTIVE

    async def run(self) -> None:
        """Run the session until either leg closes.

        The client WebSocket must already be accepted. Returns once both legs
        are closed; connection failures are reported to the client rather
        than raised.
        """
        if self.state != RelayState.CONNECTING:
            raise RuntimeError(f"Relay session {self.session_id} already {self.state.value}")

        self.logger.info(f"Relay session {self.session_id} started")
        try:
            if not await self.start():
                return
            await asyncio.gather(self.receive_from_client(), self.receive_from_upstream())
        finally:
            await self.close()
            self.logger.info(
                f"Relay session {self.session_id} ended "
                f"(client frames: {self.frames_from_client}, "
                f"upstream frames: {self.frames_from_upstream}, "
                f"function calls: {self.function_calls})"
            )

    async def start(self) -> bool:
        """Open the upstream leg and send the session configuration.

        Returns:
            True if the session is active, False if the handshake failed
        """
        try:
            self.upstream_websocket = await self.connector.connect()
        except UpstreamConnectionError as e:
            await self.error_handler.handle_error(
                e,
                context=ErrorContext.UPSTREAM,
                severity=ErrorSeverity.HIGH,
                operation="connect",
                session_id=self.session_id,
            )
            await self._terminate_client(
                f"Failed to connect to AI system: {e}", CLOSE_SERVER_ERROR
            )
            return False

        self.function_handler.realtime_websocket = self.upstream_websocket

        try:
            await self.upstream_websocket.send(
                SessionUpdateEvent(session=self.session_config).to_json()
            )
        except ConnectionClosed as e:
            await self.error_handler.handle_error(
                e,
                context=ErrorContext.UPSTREAM,
                severity=ErrorSeverity.HIGH,
                operation="session_update",
                session_id=self.session_id,
            )
            await self._terminate_client("AI system rejected the session", CLOSE_SERVER_ERROR)
            return False

        self.state = RelayState.ACTIVE
        self.logger.info(f"Session configuration sent for {self.session_id}")
        return True

    async def receive_from_client(self) -> None:
        """Forward client frames upstream until the client leaves."""
        try:
            async for message in self.client_websocket.iter_text():
                if not self.is_active:
                    break
                self.frames_from_client += 1
                await self.upstream_websocket.send(message)
        except ConnectionClosed:
            # The upstream pump reports the upstream closure to the client
            return
        except Exception as e:
            await self.error_handler.handle_error(
                e,
                context=ErrorContext.WEBSOCKET,
                severity=ErrorSeverity.HIGH,
                operation="receive_from_client",
                session_id=self.session_id,
            )

        if self.is_active:
            self.logger.info(f"Client disconnected from session {self.session_id}")
            self._client_disconnected = True
            await self._close_upstream()

    async def receive_from_upstream(self) -> None:
        """Forward upstream frames to the client and run their side effects."""
        message = "AI connection closed"
        code = CLOSE_NORMAL
        try:
            async for frame in self.upstream_websocket:
                self.frames_from_upstream += 1
                if not await self._forward_to_client(frame):
                    break
                await self._inspect_upstream_frame(frame)
        except ConnectionClosedOK:
            pass
        except ConnectionClosed as e:
            message, code = "AI connection error", CLOSE_SERVER_ERROR
            await self.error_handler.handle_error(
                e,
                context=ErrorContext.UPSTREAM,
                severity=ErrorSeverity.HIGH,
                operation="receive_from_upstream",
                session_id=self.session_id,
            )
        except Exception as e:
            message, code = "AI connection error", CLOSE_SERVER_ERROR
            await self.error_handler.handle_error(
                e,
                context=ErrorContext.SESSION,
                severity=ErrorSeverity.CRITICAL,
                operation="receive_from_upstream",
                session_id=self.session_id,
            )

        if not self._client_disconnected and self.is_active:
            self.logger.info(f"Upstream closed for session {self.session_id}")
            await self._terminate_client(message, code)

    async def _forward_to_client(self, frame: Union[str, bytes]) -> bool:
        try:
            await WebSocketUtils.send_raw(self.client_websocket, frame)
            return True
        except Exception as e:
            self.logger.info(f"Client unreachable in session {self.session_id}: {e}")
            self._client_disconnected = True
            await self._close_upstream()
            return False

    async def _inspect_upstream_frame(self, frame: Union[str, bytes]) -> None:
        try:
            data = json.loads(frame)
        except ValueError:
            self.logger.debug("Upstream frame is not JSON; forwarded without inspection")
            return
        if isinstance(data, dict) and isinstance(data.get("type"), str):
            if self.logger.isEnabledFor(logging.DEBUG):
                self.logger.debug(WebSocketUtils.format_event_log(data["type"], data))
            await self.event_router.dispatch(data)

    async def handle_function_call(self, data: Dict[str, Any]) -> None:
        """Dispatch a completed tool call and broadcast its SystemAction."""
        event = parse_upstream_event(data)
        if not isinstance(event, FunctionCallArgumentsDoneEvent):
            self.logger.warning(f"Malformed function call event: {data}")
            return

        self.function_calls += 1
        action = await self.function_handler.handle_function_call_arguments_done(event)
        if action is not None:
            await WebSocketUtils.safe_send_event(
                self.client_websocket, action.to_json(), self.logger
            )

    def _handle_session_created(self, data: Dict[str, Any]) -> None:
        session = data.get("session") or {}
        self.logger.info(f"Upstream session created: {session.get('id', 'unknown')}")

    def _handle_response_created(self, data: Dict[str, Any]) -> None:
        response_id = (data.get("response") or {}).get("id")
        if self.active_response_id and self.active_response_id != response_id:
            self.logger.warning(
                f"Response {response_id} started while {self.active_response_id} is still active"
            )
        self.active_response_id = response_id

    def _handle_response_done(self, data: Dict[str, Any]) -> None:
        response_id = (data.get("response") or {}).get("id")
        if response_id is None or response_id == self.active_response_id:
            self.active_response_id = None

    async def _terminate_client(self, message: str, code: int) -> None:
        """Send a terminal error frame if possible, then close the client."""
        self.state = RelayState.CLOSING
        await WebSocketUtils.safe_send_event(
            self.client_websocket, {"type": "error", "message": message}, self.logger
        )
        await WebSocketUtils.safe_close(self.client_websocket, code=code, logger_instance=self.logger)
        await self._close_upstream()

    async def _close_upstream(self) -> None:
        if self.state in (RelayState.ACTIVE, RelayState.CONNECTING):
            self.state = RelayState.CLOSING
        if self.upstream_websocket is not None:
            await WebSocketUtils.safe_close(
                self.upstream_websocket, logger_instance=self.logger
            )

    async def close(self) -> None:
        """Close both legs. Safe to call more than once."""
        if self.state == RelayState.CLOSED:
            return
        self.state = RelayState.CLOSING
        await self._close_upstream()
        await WebSocketUtils.safe_close(self.client_websocket, logger_instance=self.logger)
        self.state = RelayState.CLOSED

    def get_stats(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "frames_from_client": self.frames_from_client,
            "frames_from_upstream": self.frames_from_upstream,
            "function_calls": self.function_calls,
            "errors": self.error_handler.get_error_stats()["total_errors"],
        }
