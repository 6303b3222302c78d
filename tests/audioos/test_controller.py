"""Tests for the Audio OS client controller."""

import base64
import json
from unittest.mock import MagicMock, patch

import pytest

from audioos.client import audio
from audioos.client.controller import AudioOSClient, ConnectionState
from audioos.models.system_action import SystemAction

from conftest import FakeUpstreamWebSocket, wait_until

RELAY_URL = "ws://localhost:8000/realtime-audio-os"


class FakeStream:
    def __init__(self, **kwargs):
        self.kwargs = kwargs

    def start(self):
        pass

    def stop(self):
        pass

    def close(self):
        pass


@pytest.fixture
def relay_socket():
    return FakeUpstreamWebSocket()


@pytest.fixture
def client(relay_socket, logger):
    async def connect(url):
        return relay_socket

    client = AudioOSClient(RELAY_URL, connect=connect, capture_start_delay=0, logger=logger)
    client.capture.stream_factory = FakeStream
    client.playback.stream_factory = FakeStream
    client.on_connection_change = MagicMock()
    client.on_speaking_change = MagicMock()
    client.on_transcript = MagicMock()
    client.on_system_action = MagicMock()
    client.on_error = MagicMock()
    return client


def push(socket, event):
    socket.incoming.put_nowait(json.dumps(event))


class TestConnection:
    @pytest.mark.asyncio
    async def test_connect_and_disconnect(self, client, relay_socket):
        assert await client.connect() is True
        assert client.is_connected
        assert client.playback.stream is not None

        await client.disconnect()

        assert relay_socket.closed is True
        assert client.connection_state == ConnectionState.DISCONNECTED
        states = [call.args[0] for call in client.on_connection_change.call_args_list]
        assert states == [
            ConnectionState.CONNECTING,
            ConnectionState.CONNECTED,
            ConnectionState.DISCONNECTED,
        ]

    @pytest.mark.asyncio
    async def test_connect_failure(self, logger):
        async def refuse(url):
            raise OSError("connection refused")

        client = AudioOSClient(RELAY_URL, connect=refuse, logger=logger)
        client.on_error = MagicMock()

        assert await client.connect() is False
        assert client.connection_state == ConnectionState.DISCONNECTED
        client.on_error.assert_called_once_with("Failed to connect: connection refused")

    @pytest.mark.asyncio
    async def test_relay_close_ends_session(self, client, relay_socket):
        await client.connect()

        relay_socket.incoming.put_nowait(None)
        await wait_until(lambda: client.connection_state == ConnectionState.DISCONNECTED)

        assert client.is_listening is False

    @pytest.mark.asyncio
    async def test_reconnect_starts_a_fresh_capture(self, client, relay_socket):
        await client.connect()
        push(relay_socket, {"type": "session.created"})
        await wait_until(lambda: client.is_listening)
        first_capture = client.capture
        await client.disconnect()
        assert first_capture.stopped

        second_socket = FakeUpstreamWebSocket()

        async def connect(url):
            return second_socket

        client._connect = connect
        assert await client.connect() is True
        push(second_socket, {"type": "session.created"})
        await wait_until(lambda: client.is_listening)

        assert client.capture is not first_capture
        assert client.capture.stream_factory is FakeStream
        client.capture.submit(b"\x01\x00")
        await wait_until(lambda: len(second_socket.sent) == 1)
        assert json.loads(second_socket.sent[0])["type"] == "input_audio_buffer.append"
        client.on_error.assert_not_called()

        await client.disconnect()

    @pytest.mark.asyncio
    async def test_toggle_listening(self, client):
        await client.toggle_listening()
        assert client.is_connected

        client.is_listening = True
        await client.toggle_listening()
        assert client.is_listening is False
        await client.toggle_listening()
        assert client.is_listening is True

        await client.disconnect()


class TestCapture:
    @pytest.mark.asyncio
    async def test_capture_starts_after_session_created(self, client, relay_socket):
        await client.connect()
        assert client.is_listening is False

        push(relay_socket, {"type": "session.created", "session": {"id": "sess_1"}})
        await wait_until(lambda: client.is_listening)

        client.capture.submit(b"\x01\x00\x02\x00")
        await wait_until(lambda: len(relay_socket.sent) == 1)

        event = json.loads(relay_socket.sent[0])
        assert event["type"] == "input_audio_buffer.append"
        assert base64.b64decode(event["audio"]) == b"\x01\x00\x02\x00"

        await client.disconnect()

    @pytest.mark.asyncio
    async def test_paused_listening_sends_nothing(self, client, relay_socket):
        await client.connect()
        push(relay_socket, {"type": "session.created"})
        await wait_until(lambda: client.is_listening)

        await client.toggle_listening()
        client.capture.submit(b"\x01\x00")

        assert relay_socket.sent == []
        await client.disconnect()

    @pytest.mark.asyncio
    async def test_microphone_failure_is_reported(self, client, relay_socket):
        client.capture.stream_factory = None
        with patch.object(audio, "AUDIO_AVAILABLE", False):
            await client.connect()
            push(relay_socket, {"type": "session.created"})
            await wait_until(lambda: client.on_error.called)

        message = client.on_error.call_args.args[0]
        assert message.startswith("Microphone unavailable: ")
        assert client.is_listening is False
        assert client.error_handler.get_error_stats()["error_counts"]["audio"] == 1
        await client.disconnect()


class TestSpeaking:
    @pytest.mark.asyncio
    async def test_speaking_until_playback_drains(self, client, relay_socket):
        await client.connect()

        chunk = base64.b64encode(b"\x01\x00" * 8).decode("ascii")
        push(relay_socket, {"type": "response.audio.delta", "delta": chunk})
        push(relay_socket, {"type": "response.audio.delta", "delta": chunk})
        await wait_until(lambda: client.playback.pending_bytes == 32)
        assert client.is_speaking is True

        push(relay_socket, {"type": "response.audio.done"})
        await wait_until(lambda: client.playback._response_done)
        assert client.is_speaking is True

        client.playback.read(16)
        await wait_until(lambda: not client.is_speaking)

        speaking = [call.args[0] for call in client.on_speaking_change.call_args_list]
        assert speaking == [True, False]
        await client.disconnect()

    @pytest.mark.asyncio
    async def test_without_output_device(self, client, relay_socket):
        client.playback.stream_factory = None
        with patch.object(audio, "AUDIO_AVAILABLE", False):
            await client.connect()

        chunk = base64.b64encode(b"\x00\x00").decode("ascii")
        push(relay_socket, {"type": "response.audio.delta", "delta": chunk})
        push(relay_socket, {"type": "response.audio.done"})
        await wait_until(lambda: client.on_speaking_change.call_count == 2)

        assert client.is_speaking is False
        assert client.playback.pending_bytes == 0
        client.on_error.assert_called_once()
        assert client.on_error.call_args.args[0].startswith("Speaker unavailable: ")
        await client.disconnect()


class TestNotifications:
    @pytest.mark.asyncio
    async def test_transcript(self, client, relay_socket):
        await client.connect()

        push(
            relay_socket,
            {
                "type": "conversation.item.input_audio_transcription.completed",
                "item_id": "item_1",
                "transcript": "turn the volume up",
            },
        )
        await wait_until(lambda: client.on_transcript.called)

        client.on_transcript.assert_called_once_with("turn the volume up")
        assert client.transcript == "turn the volume up"
        await client.disconnect()

    @pytest.mark.asyncio
    async def test_system_action_updates_state(self, client, relay_socket):
        await client.connect()

        push(
            relay_socket,
            {
                "type": "system.action",
                "success": True,
                "message": "volume adjusted to up",
                "action": "adjust_settings",
                "data": {"setting": "volume", "value": "up"},
                "call_id": "call_1",
                "timestamp": "2024-05-01T09:30:15+00:00",
            },
        )
        await wait_until(lambda: client.on_system_action.called)

        action = client.on_system_action.call_args.args[0]
        assert isinstance(action, SystemAction)
        assert action.call_id == "call_1"
        assert client.state.volume == 85
        await client.disconnect()

    @pytest.mark.asyncio
    async def test_error_frame_is_one_notification(self, client, relay_socket):
        await client.connect()

        push(relay_socket, {"type": "error", "message": "AI connection closed"})
        push(relay_socket, {"type": "error", "error": {"message": "Invalid audio"}})
        await wait_until(lambda: client.on_error.call_count == 2)

        messages = [call.args[0] for call in client.on_error.call_args_list]
        assert messages == ["AI connection closed", "Invalid audio"]
        await client.disconnect()

    @pytest.mark.asyncio
    async def test_callback_failure_does_not_stop_client(self, client, relay_socket):
        client.on_transcript = MagicMock(side_effect=RuntimeError("ui broke"))
        await client.connect()

        push(
            relay_socket,
            {"type": "conversation.item.input_audio_transcription.completed", "transcript": "hi"},
        )
        push(relay_socket, {"type": "error", "message": "later"})
        await wait_until(lambda: client.on_error.called)

        assert client.is_connected
        await client.disconnect()
