"""Client side of the Audio OS relay: audio devices, UI state and the relay connection."""

from .audio import AudioCapture, AudioPlayback, build_append_event
from .controller import AudioOSClient, ConnectionState
from .session_state import AudioOSState, OSApplication

__all__ = [
    "AudioCapture",
    "AudioPlayback",
    "AudioOSClient",
    "AudioOSState",
    "ConnectionState",
    "OSApplication",
    "build_append_event",
]
