"""
Configuration models for the Audio OS relay.

This module defines dataclasses for different configuration domains,
providing type safety and validation for all application settings.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from audioos.config.constants import (
    DEFAULT_AUDIO_ENCODING,
    DEFAULT_BITS_PER_SAMPLE,
    DEFAULT_CHANNELS,
    DEFAULT_FRAME_SIZE,
    DEFAULT_FUNCTION_CALL_HISTORY,
    DEFAULT_FUNCTION_TIMEOUT,
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_REALTIME_BASE_URL,
    DEFAULT_REALTIME_MODEL,
    DEFAULT_SAMPLE_RATE,
    DEFAULT_TEMPERATURE,
    DEFAULT_TRANSCRIPTION_MODEL,
    DEFAULT_VAD_PREFIX_PADDING_MS,
    DEFAULT_VAD_SILENCE_DURATION_MS,
    DEFAULT_VAD_THRESHOLD,
    DEFAULT_WS_PATH,
    REALTIME_BETA_HEADER,
    VOICE,
)


class Environment(Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class ServerConfig:
    """Server configuration settings."""

    host: str = "0.0.0.0"
    port: int = 8000
    environment: Environment = Environment.PRODUCTION
    ws_path: str = DEFAULT_WS_PATH
    reload: bool = False
    access_log: bool = False


@dataclass
class OpenAIConfig:
    """Upstream realtime API configuration."""

    api_key: Optional[str] = None
    model: str = DEFAULT_REALTIME_MODEL
    base_url: str = DEFAULT_REALTIME_BASE_URL
    connect_timeout: float = 15.0

    def get_websocket_url(self) -> str:
        """Get the realtime API WebSocket URL."""
        return f"{self.base_url}/v1/realtime?model={self.model}"

    def get_headers(self) -> Dict[str, str]:
        """Get headers for upstream authentication."""
        if not self.api_key:
            raise ValueError("OpenAI API key is required")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "OpenAI-Beta": REALTIME_BETA_HEADER,
        }


@dataclass
class WebSocketConfig:
    """WebSocket connection configuration for the upstream leg."""

    ping_interval: int = 20
    ping_timeout: int = 30
    close_timeout: int = 10
    max_size: int = 16 * 1024 * 1024  # 16MB


@dataclass
class AudioConfig:
    """Audio capture and playback configuration."""

    sample_rate: int = DEFAULT_SAMPLE_RATE
    channels: int = DEFAULT_CHANNELS
    bits_per_sample: int = DEFAULT_BITS_PER_SAMPLE
    frame_size: int = DEFAULT_FRAME_SIZE
    encoding: str = DEFAULT_AUDIO_ENCODING


@dataclass
class VADConfig:
    """Server-side voice activity detection parameters."""

    threshold: float = DEFAULT_VAD_THRESHOLD
    prefix_padding_ms: int = DEFAULT_VAD_PREFIX_PADDING_MS
    silence_duration_ms: int = DEFAULT_VAD_SILENCE_DURATION_MS

    def to_turn_detection(self) -> Dict[str, Union[str, float, int]]:
        return {
            "type": "server_vad",
            "threshold": self.threshold,
            "prefix_padding_ms": self.prefix_padding_ms,
            "silence_duration_ms": self.silence_duration_ms,
        }


@dataclass
class SessionDefaults:
    """Static session settings sent upstream in session.update."""

    voice: str = VOICE
    transcription_model: str = DEFAULT_TRANSCRIPTION_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_output_tokens: Union[int, str] = DEFAULT_MAX_OUTPUT_TOKENS


@dataclass
class DispatchConfig:
    """Function-call dispatch settings."""

    function_timeout: float = DEFAULT_FUNCTION_TIMEOUT
    call_history_size: int = DEFAULT_FUNCTION_CALL_HISTORY


@dataclass
class LoggingConfig:
    """Logging configuration settings."""

    level: LogLevel = LogLevel.INFO
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_dir: Path = field(default_factory=lambda: Path("logs"))
    log_filename: str = "audioos.log"
    max_log_size: int = 10 * 1024 * 1024  # 10 MB
    backup_count: int = 5
    console_output: bool = True
    file_output: bool = True
    redact_sensitive: bool = True


@dataclass
class SecurityConfig:
    """Security-related configuration."""

    allowed_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class ApplicationConfig:
    """Master application configuration containing all domain configs."""

    server: ServerConfig = field(default_factory=ServerConfig)
    openai: OpenAIConfig = field(default_factory=OpenAIConfig)
    websocket: WebSocketConfig = field(default_factory=WebSocketConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    vad: VADConfig = field(default_factory=VADConfig)
    session: SessionDefaults = field(default_factory=SessionDefaults)
    dispatch: DispatchConfig = field(default_factory=DispatchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if self.server.port <= 0 or self.server.port > 65535:
            errors.append("Server port must be between 1 and 65535")

        if not self.server.ws_path.startswith("/"):
            errors.append("WebSocket path must start with '/'")

        if self.audio.sample_rate <= 0:
            errors.append("Audio sample rate must be positive")

        if self.audio.frame_size <= 0:
            errors.append("Audio frame size must be positive")

        if self.vad.threshold < 0 or self.vad.threshold > 1:
            errors.append("VAD threshold must be between 0 and 1")

        if self.dispatch.function_timeout <= 0:
            errors.append("Function timeout must be positive")

        if self.dispatch.call_history_size <= 0:
            errors.append("Function call history size must be positive")

        return errors

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.server.environment == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.server.environment == Environment.PRODUCTION
