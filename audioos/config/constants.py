"""
Constants and configuration values used throughout the application.

This module defines constants that are used across different parts of the application,
providing a centralized location for configuration values and making it easier to
maintain consistent naming throughout the codebase.
"""

# Logger name used throughout the application
LOGGER_NAME = "audioos"

# Assistant persona and default voice
ASSISTANT_NAME = "ARIA"
VOICE = "alloy"

# Upstream realtime API
DEFAULT_REALTIME_MODEL = "gpt-4o-realtime-preview-2024-12-17"
DEFAULT_REALTIME_BASE_URL = "wss://api.openai.com"
REALTIME_BETA_HEADER = "realtime=v1"
DEFAULT_TRANSCRIPTION_MODEL = "whisper-1"

# Relay endpoint
DEFAULT_WS_PATH = "/realtime-audio-os"

# Audio constants (PCM16 mono, matches the realtime API)
DEFAULT_SAMPLE_RATE = 24000  # 24kHz
DEFAULT_CHANNELS = 1  # Mono
DEFAULT_BITS_PER_SAMPLE = 16  # 16-bit PCM
DEFAULT_FRAME_SIZE = 4096  # samples per captured frame
DEFAULT_AUDIO_ENCODING = "pcm16"

# Server VAD defaults
DEFAULT_VAD_THRESHOLD = 0.5
DEFAULT_VAD_PREFIX_PADDING_MS = 300
DEFAULT_VAD_SILENCE_DURATION_MS = 1000

# Response generation defaults
DEFAULT_TEMPERATURE = 0.8
DEFAULT_MAX_OUTPUT_TOKENS = "inf"

# Function dispatch
DEFAULT_FUNCTION_TIMEOUT = 5.0  # seconds
DEFAULT_FUNCTION_CALL_HISTORY = 256  # call ids remembered per session

# Client-side UI state
ACTION_HISTORY_SIZE = 10
DEFAULT_VOLUME = 75
DEFAULT_BRIGHTNESS = 80
SETTING_STEP = 10

# Deferral before starting/stopping capture to avoid racing device acquisition
CAPTURE_START_DELAY = 0.1  # seconds

# Downstream event type used for dispatched function results
SYSTEM_ACTION_EVENT = "system.action"
