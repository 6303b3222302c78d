"""
Audio OS client: connects to the relay, streams the microphone and plays
the assistant's voice.

The client owns the listening flag and the local UI state. It reacts to
relay frames as follows:

- ``session.created``: start microphone capture after a short deferral
- ``response.audio.delta``: queue audio, mark speaking on the first chunk
- ``response.audio.done``: clear speaking once the audio has played
- ``conversation.item.input_audio_transcription.completed``: surface transcript
- ``system.action``: apply to local state and surface the action
- ``error``: surface a single notification

A closed connection is terminal; calling ``connect()`` again starts a new
relay session.
"""

import asyncio
import json
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

import websockets
from websockets.exceptions import ConnectionClosed

from audioos.client.audio import AudioCapture, AudioPlayback
from audioos.client.session_state import AudioOSState
from audioos.config.constants import CAPTURE_START_DELAY, SYSTEM_ACTION_EVENT
from audioos.config.models import AudioConfig
from audioos.handlers.error_handler import ErrorContext, ErrorHandler, ErrorInfo, ErrorSeverity
from audioos.handlers.event_router import EventRouter
from audioos.models.openai_api import ErrorEvent, ServerEventType, parse_upstream_event

module_logger = logging.getLogger(__name__)

AUDIO_ERROR_LABELS = {
    "capture_start": "Microphone unavailable",
    "playback_start": "Speaker unavailable",
}


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class AudioOSClient:
    """
    Voice client for the Audio OS relay.

    Callbacks (all optional, sync or async):
        on_system_action(SystemAction)
        on_transcript(str)
        on_speaking_change(bool)
        on_connection_change(ConnectionState)
        on_error(str)
    """

    def __init__(
        self,
        url: str,
        audio_config: Optional[AudioConfig] = None,
        capture: Optional[AudioCapture] = None,
        playback: Optional[AudioPlayback] = None,
        connect: Optional[Callable[..., Awaitable[Any]]] = None,
        capture_start_delay: float = CAPTURE_START_DELAY,
        logger: Optional[logging.Logger] = None,
    ):
        self.url = url
        self.audio_config = audio_config or AudioConfig()
        self.logger = logger or module_logger
        self._connect = connect or websockets.connect
        self.capture_start_delay = capture_start_delay

        self.websocket = None
        self.connection_state = ConnectionState.DISCONNECTED
        self.is_listening = False
        self.is_speaking = False
        self.transcript = ""
        self.state = AudioOSState()

        self.capture = capture or AudioCapture(
            self.audio_config, is_listening=lambda: self.is_listening
        )
        self.playback = playback or AudioPlayback(self.audio_config)
        self.playback.on_complete = self._on_playback_complete

        self.on_system_action: Optional[Callable] = None
        self.on_transcript: Optional[Callable] = None
        self.on_speaking_change: Optional[Callable] = None
        self.on_connection_change: Optional[Callable] = None
        self.on_error: Optional[Callable] = None

        self.error_handler = ErrorHandler(self.logger)
        self.error_handler.register_handler(self._report_audio_error, ErrorContext.AUDIO)
        self.router = EventRouter(self.logger)
        self.router.register_handler(ServerEventType.SESSION_CREATED, self._handle_session_created)
        self.router.register_handler(ServerEventType.RESPONSE_AUDIO_DELTA, self._handle_audio_delta)
        self.router.register_handler(ServerEventType.RESPONSE_AUDIO_DONE, self._handle_audio_done)
        self.router.register_handler(
            ServerEventType.CONVERSATION_ITEM_INPUT_AUDIO_TRANSCRIPTION_COMPLETED,
            self._handle_transcript,
        )
        self.router.register_handler(ServerEventType.ERROR, self._handle_error_event)
        self.router.register_handler(SYSTEM_ACTION_EVENT, self._handle_system_action)

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._receive_task: Optional[asyncio.Task] = None
        self._send_task: Optional[asyncio.Task] = None
        self._capture_task: Optional[asyncio.Task] = None

    @property
    def is_connected(self) -> bool:
        return self.connection_state == ConnectionState.CONNECTED

    async def connect(self) -> bool:
        """Open a relay session. Returns True on success."""
        if self.connection_state != ConnectionState.DISCONNECTED:
            self.logger.warning("Already connected or connecting")
            return self.is_connected

        self._loop = asyncio.get_running_loop()
        if self.capture.stopped:
            self.capture = self.capture.renew()
        await self._set_connection_state(ConnectionState.CONNECTING)
        try:
            self.websocket = await self._connect(self.url)
        except Exception as e:
            await self.error_handler.handle_error(
                e,
                context=ErrorContext.WEBSOCKET,
                severity=ErrorSeverity.HIGH,
                operation="connect",
                url=self.url,
            )
            await self._set_connection_state(ConnectionState.DISCONNECTED)
            await self._notify(self.on_error, f"Failed to connect: {e}")
            return False

        try:
            self.playback.start()
        except RuntimeError as e:
            await self.error_handler.handle_error(
                e, context=ErrorContext.AUDIO, severity=ErrorSeverity.MEDIUM, operation="playback_start"
            )

        await self._set_connection_state(ConnectionState.CONNECTED)
        self._receive_task = asyncio.create_task(self._receive_loop())
        return True

    async def disconnect(self) -> None:
        """Stop capture and playback and close the relay session."""
        self.is_listening = False
        for task in (self._capture_task, self._send_task, self._receive_task):
            if task is not None and task is not asyncio.current_task() and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._capture_task = self._send_task = self._receive_task = None

        self.capture.stop()
        self.playback.stop()
        if self.websocket is not None:
            try:
                await self.websocket.close()
            except Exception as e:
                await self.error_handler.handle_error(
                    e, context=ErrorContext.WEBSOCKET, severity=ErrorSeverity.LOW, operation="close"
                )
            self.websocket = None

        await self._set_speaking(False)
        await self._set_connection_state(ConnectionState.DISCONNECTED)

    async def toggle_listening(self) -> None:
        """Connect when disconnected, otherwise flip the listening flag."""
        if not self.is_connected:
            await self.connect()
            return
        self.is_listening = not self.is_listening
        self.logger.info(f"Listening {'started' if self.is_listening else 'stopped'}")

    async def _receive_loop(self) -> None:
        try:
            async for message in self.websocket:
                try:
                    data = json.loads(message)
                except ValueError as e:
                    await self.error_handler.handle_error(
                        e, context=ErrorContext.WEBSOCKET, severity=ErrorSeverity.LOW, operation="parse"
                    )
                    continue
                if isinstance(data, dict):
                    await self.router.dispatch(data)
        except ConnectionClosed as e:
            await self.error_handler.handle_error(
                e, context=ErrorContext.WEBSOCKET, severity=ErrorSeverity.MEDIUM, operation="receive"
            )
        self.logger.info("Relay connection closed")
        await self.disconnect()

    async def _handle_session_created(self, data: Dict[str, Any]) -> None:
        if self._capture_task is None:
            self._capture_task = asyncio.create_task(self._start_capture())

    async def _start_capture(self) -> None:
        await asyncio.sleep(self.capture_start_delay)
        try:
            self.capture.start()
        except RuntimeError as e:
            await self.error_handler.handle_error(
                e, context=ErrorContext.AUDIO, severity=ErrorSeverity.HIGH, operation="capture_start"
            )
            return
        self.is_listening = True
        self._send_task = asyncio.create_task(self._send_audio())

    async def _send_audio(self) -> None:
        try:
            async for event in self.capture.frames():
                await self.websocket.send(event)
        except ConnectionClosed:
            self.logger.debug("Stopped sending audio: connection closed")

    async def _report_audio_error(self, error_info: ErrorInfo) -> None:
        label = AUDIO_ERROR_LABELS.get(error_info.operation, "Audio error")
        await self._notify(self.on_error, f"{label}: {error_info.error}")

    async def _handle_audio_delta(self, data: Dict[str, Any]) -> None:
        delta = data.get("delta")
        if not delta:
            return
        await self._set_speaking(True)
        # Nothing drains the buffer without an output device
        if self.playback.stream is not None:
            self.playback.enqueue(delta)

    async def _handle_audio_done(self, data: Dict[str, Any]) -> None:
        if self.playback.stream is None:
            self.playback.clear()
            await self._set_speaking(False)
        else:
            self.playback.finish_response()

    async def _handle_transcript(self, data: Dict[str, Any]) -> None:
        self.transcript = data.get("transcript", "")
        await self._notify(self.on_transcript, self.transcript)

    async def _handle_error_event(self, data: Dict[str, Any]) -> None:
        event = parse_upstream_event(data)
        message = event.description if isinstance(event, ErrorEvent) else "Unknown error"
        await self._notify(self.on_error, message)

    async def _handle_system_action(self, data: Dict[str, Any]) -> None:
        action = self.state.apply_action(data)
        await self._notify(self.on_system_action, action)

    def _on_playback_complete(self) -> None:
        # Runs on the audio thread
        if self._loop is not None and not self._loop.is_closed():
            asyncio.run_coroutine_threadsafe(self._set_speaking(False), self._loop)

    async def _set_speaking(self, speaking: bool) -> None:
        if self.is_speaking == speaking:
            return
        self.is_speaking = speaking
        await self._notify(self.on_speaking_change, speaking)

    async def _set_connection_state(self, state: ConnectionState) -> None:
        if self.connection_state == state:
            return
        self.connection_state = state
        await self._notify(self.on_connection_change, state)

    async def _notify(self, handler: Optional[Callable], *args) -> None:
        if handler is None:
            return
        try:
            if asyncio.iscoroutinefunction(handler):
                await handler(*args)
            else:
                handler(*args)
        except Exception as e:
            self.logger.error(f"Error in event handler: {e}")
