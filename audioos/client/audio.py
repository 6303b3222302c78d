"""
Microphone capture and speaker playback for the Audio OS client.

Capture opens the input device once and keeps it open; whether captured
frames are sent is gated by the client's listening flag, so toggling
listening never reacquires the device. Each frame becomes one
``input_audio_buffer.append`` event.

Playback plays base64 PCM16 chunks from ``response.audio.delta`` events in
arrival order without gaps, and signals completion once per response after
``response.audio.done`` has been seen and the buffer has drained.
"""

import asyncio
import base64
import logging
import threading
from typing import AsyncIterator, Callable, Optional

import numpy as np

from audioos.config.models import AudioConfig
from audioos.models.openai_api import InputAudioBufferAppendEvent

try:
    import sounddevice as sd

    AUDIO_AVAILABLE = True
except (ImportError, OSError):
    # PortAudio missing; device streams cannot be opened
    sd = None
    AUDIO_AVAILABLE = False

logger = logging.getLogger(__name__)

BYTES_PER_SAMPLE = 2


def encode_audio_frame(pcm: bytes) -> str:
    """Base64-encode one PCM16 frame."""
    return base64.b64encode(pcm).decode("ascii")


def decode_audio_chunk(chunk: str) -> bytes:
    """Decode one base64 PCM16 chunk."""
    return base64.b64decode(chunk)


def build_append_event(pcm: bytes) -> str:
    """Wrap a PCM16 frame in a serialized input_audio_buffer.append event."""
    return InputAudioBufferAppendEvent(audio=encode_audio_frame(pcm)).to_json()


class AudioCapture:
    """
    Captures fixed-size PCM16 frames from the microphone.

    Frames captured while ``is_listening()`` is False are discarded. The
    sequence returned by ``frames()`` is infinite until ``stop()`` is called
    and cannot be restarted afterwards; ``renew()`` builds a replacement.

    Args:
        config: Sample rate, channel count and frame size
        is_listening: Returns the current listening flag (read only)
        stream_factory: Builds the input stream; defaults to sounddevice.InputStream
    """

    def __init__(
        self,
        config: Optional[AudioConfig] = None,
        is_listening: Callable[[], bool] = lambda: True,
        stream_factory: Optional[Callable[..., object]] = None,
    ):
        self.config = config or AudioConfig()
        self.is_listening = is_listening
        self.stream_factory = stream_factory
        self.stream = None
        self.frames_captured = 0
        self.frames_dropped = 0

        self._queue: "asyncio.Queue[Optional[bytes]]" = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._started = False
        self._stopped = False

    @property
    def frame_bytes(self) -> int:
        return self.config.frame_size * self.config.channels * BYTES_PER_SAMPLE

    @property
    def stopped(self) -> bool:
        return self._stopped

    def renew(self) -> "AudioCapture":
        """Return an unstarted capture with the same device settings."""
        return AudioCapture(self.config, self.is_listening, self.stream_factory)

    def start(self) -> None:
        """Open the input device and begin capturing."""
        if self._stopped:
            raise RuntimeError("Audio capture cannot be restarted after stop()")
        if self._started:
            return

        self._loop = asyncio.get_running_loop()
        factory = self.stream_factory
        if factory is None:
            if not AUDIO_AVAILABLE:
                raise RuntimeError("Audio capture requires sounddevice and PortAudio")
            factory = sd.InputStream

        self.stream = factory(
            samplerate=self.config.sample_rate,
            channels=self.config.channels,
            dtype="int16",
            blocksize=self.config.frame_size,
            callback=self._callback,
        )
        self.stream.start()
        self._started = True
        logger.info(
            f"Audio capture started: {self.config.sample_rate}Hz, "
            f"{self.config.frame_size} samples per frame"
        )

    def stop(self) -> None:
        """Close the input device and end the frame sequence."""
        if self._stopped:
            return
        self._stopped = True
        if self.stream is not None:
            self.stream.stop()
            self.stream.close()
            self.stream = None
        if self._loop is None:
            self._queue.put_nowait(None)
        elif not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._queue.put_nowait, None)
        logger.info(
            f"Audio capture stopped (captured: {self.frames_captured}, dropped: {self.frames_dropped})"
        )

    def _callback(self, indata: np.ndarray, frames: int, time, status) -> None:
        if status:
            logger.warning(f"Capture status: {status}")
        self.submit(indata.astype(np.int16).tobytes())

    def submit(self, pcm: bytes) -> None:
        """Accept one captured frame; safe to call from the audio thread."""
        if self._stopped or not self.is_listening():
            self.frames_dropped += 1
            return
        self.frames_captured += 1
        if self._loop is None:
            self._queue.put_nowait(pcm)
        else:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, pcm)

    async def frames(self) -> AsyncIterator[str]:
        """Yield serialized input_audio_buffer.append events, one per frame."""
        while True:
            pcm = await self._queue.get()
            if pcm is None:
                return
            yield build_append_event(pcm)


class AudioPlayback:
    """
    Plays response audio in arrival order.

    Chunks are appended to a byte buffer that the output callback drains a
    block at a time, so chunk boundaries never produce silence. After
    ``finish_response()`` the next time the buffer runs dry the
    ``on_complete`` callback fires, exactly once for that response.

    Args:
        config: Sample rate and channel count
        on_complete: Called when a finished response has fully played
        stream_factory: Builds the output stream; defaults to sounddevice.OutputStream
    """

    def __init__(
        self,
        config: Optional[AudioConfig] = None,
        on_complete: Optional[Callable[[], None]] = None,
        stream_factory: Optional[Callable[..., object]] = None,
    ):
        self.config = config or AudioConfig()
        self.on_complete = on_complete
        self.stream_factory = stream_factory
        self.stream = None
        self.chunks_played = 0
        self.bytes_played = 0

        self._buffer = bytearray()
        self._lock = threading.Lock()
        self._response_done = False

    @property
    def pending_bytes(self) -> int:
        with self._lock:
            return len(self._buffer)

    def start(self) -> None:
        """Open the output device."""
        if self.stream is not None:
            return
        factory = self.stream_factory
        if factory is None:
            if not AUDIO_AVAILABLE:
                raise RuntimeError("Audio playback requires sounddevice and PortAudio")
            factory = sd.OutputStream

        self.stream = factory(
            samplerate=self.config.sample_rate,
            channels=self.config.channels,
            dtype="int16",
            callback=self._callback,
        )
        self.stream.start()
        logger.info("Audio playback started")

    def stop(self) -> None:
        if self.stream is not None:
            self.stream.stop()
            self.stream.close()
            self.stream = None
        self.clear()
        logger.info(f"Audio playback stopped (chunks played: {self.chunks_played})")

    def enqueue(self, chunk: str) -> None:
        """Queue one base64 PCM16 chunk behind everything already queued."""
        pcm = decode_audio_chunk(chunk)
        with self._lock:
            self._buffer.extend(pcm)
            self._response_done = False
        self.chunks_played += 1
        self.bytes_played += len(pcm)

    def finish_response(self) -> None:
        """Mark the current response's audio as complete."""
        with self._lock:
            self._response_done = True
            drained = not self._buffer
        if drained:
            self._signal_complete()

    def clear(self) -> None:
        """Drop queued audio without signaling completion."""
        with self._lock:
            self._buffer.clear()
            self._response_done = False

    def read(self, frames: int) -> bytes:
        """Take ``frames`` frames of audio, padding with silence when short."""
        wanted = frames * self.config.channels * BYTES_PER_SAMPLE
        with self._lock:
            data = bytes(self._buffer[:wanted])
            del self._buffer[:wanted]
            drained = self._response_done and not self._buffer
        if drained:
            self._signal_complete()
        return data + b"\x00" * (wanted - len(data))

    def _signal_complete(self) -> None:
        with self._lock:
            if not self._response_done:
                return
            self._response_done = False
        if self.on_complete is not None:
            self.on_complete()

    def _callback(self, outdata: np.ndarray, frames: int, time, status) -> None:
        if status:
            logger.warning(f"Playback status: {status}")
        samples = np.frombuffer(self.read(frames), dtype=np.int16)
        outdata[:] = samples.reshape(-1, self.config.channels)
