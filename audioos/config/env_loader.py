"""
Environment variable loader for Audio OS relay configuration.

This module handles loading configuration from environment variables,
with type conversion, validation, and fallback to defaults.

Environment variables must be explicitly loaded using load_env_file() before
accessing any configuration functions.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar, Union, cast, get_origin

from dotenv import load_dotenv

from .constants import (
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
    VOICE,
)
from .models import (
    ApplicationConfig,
    AudioConfig,
    DispatchConfig,
    Environment,
    LoggingConfig,
    LogLevel,
    OpenAIConfig,
    SecurityConfig,
    ServerConfig,
    SessionDefaults,
    VADConfig,
    WebSocketConfig,
)

# Track if environment variables have been loaded
_env_loaded = False


def load_env_file(env_file: Optional[str] = None) -> None:
    """Load environment variables from a .env file.

    This function must be called before accessing any configuration functions.

    Args:
        env_file: Path to the .env file. If None, uses default behavior.
    """
    global _env_loaded
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()
    _env_loaded = True


def _check_env_loaded() -> None:
    """Check if environment variables have been loaded, raise error if not."""
    if not _env_loaded:
        raise RuntimeError(
            "Environment variables not loaded. Call load_env_file() before accessing configuration."
        )


T = TypeVar("T")


def safe_convert(value: Optional[str], target_type: Type[T], default: T) -> T:
    """Safely convert environment variable string to target type."""
    if value is None:
        return default

    try:
        if target_type == bool:
            return cast(T, value.lower() == "true")
        elif target_type == int:
            return cast(T, int(value))
        elif target_type == float:
            return cast(T, float(value))
        elif target_type == str:
            return cast(T, value)
        elif target_type == Path:
            return cast(T, Path(value))
        elif get_origin(target_type) == list:
            return cast(
                T,
                (
                    [item.strip() for item in value.split(",") if item.strip()]
                    if value
                    else default
                ),
            )
        else:
            return default
    except (ValueError, TypeError):
        return default


def safe_string_or_none(value: Optional[str]) -> Optional[str]:
    """Convert environment variable to string or None if empty."""
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _token_limit(value: Optional[str]) -> Union[int, str]:
    # The realtime API accepts either an integer or the literal "inf"
    if value is None or value.strip().lower() == "inf":
        return DEFAULT_MAX_OUTPUT_TOKENS
    return safe_convert(value, int, DEFAULT_MAX_OUTPUT_TOKENS)  # type: ignore[arg-type]


def load_server_config() -> ServerConfig:
    """Load server configuration from environment variables."""
    _check_env_loaded()

    env_str = os.getenv("ENV", "production").lower()
    environment = (
        Environment.DEVELOPMENT if env_str == "development" else Environment.PRODUCTION
    )
    if env_str == "testing":
        environment = Environment.TESTING

    return ServerConfig(
        host=os.getenv("HOST", "0.0.0.0"),
        port=safe_convert(os.getenv("PORT"), int, 8000),
        environment=environment,
        ws_path=os.getenv("AUDIO_OS_WS_PATH", DEFAULT_WS_PATH),
        reload=safe_convert(os.getenv("RELOAD"), bool, False),
        access_log=safe_convert(os.getenv("ACCESS_LOG"), bool, False),
    )


def load_openai_config() -> OpenAIConfig:
    """Load upstream API configuration from environment variables."""
    _check_env_loaded()

    return OpenAIConfig(
        api_key=safe_string_or_none(os.getenv("OPENAI_API_KEY")),
        model=os.getenv("OPENAI_REALTIME_MODEL", DEFAULT_REALTIME_MODEL),
        base_url=os.getenv("OPENAI_REALTIME_BASE_URL", DEFAULT_REALTIME_BASE_URL),
        connect_timeout=safe_convert(os.getenv("OPENAI_CONNECT_TIMEOUT"), float, 15.0),
    )


def load_websocket_config() -> WebSocketConfig:
    """Load WebSocket configuration from environment variables."""
    _check_env_loaded()

    return WebSocketConfig(
        ping_interval=safe_convert(os.getenv("WEBSOCKET_PING_INTERVAL"), int, 20),
        ping_timeout=safe_convert(os.getenv("WEBSOCKET_PING_TIMEOUT"), int, 30),
        close_timeout=safe_convert(os.getenv("WEBSOCKET_CLOSE_TIMEOUT"), int, 10),
        max_size=safe_convert(os.getenv("WEBSOCKET_MAX_SIZE"), int, 16 * 1024 * 1024),
    )


def load_audio_config() -> AudioConfig:
    """Load audio configuration from environment variables."""
    _check_env_loaded()

    return AudioConfig(
        sample_rate=safe_convert(os.getenv("AUDIO_SAMPLE_RATE"), int, DEFAULT_SAMPLE_RATE),
        channels=safe_convert(os.getenv("AUDIO_CHANNELS"), int, 1),
        frame_size=safe_convert(os.getenv("AUDIO_FRAME_SIZE"), int, DEFAULT_FRAME_SIZE),
    )


def load_vad_config() -> VADConfig:
    """Load server VAD configuration from environment variables."""
    _check_env_loaded()

    return VADConfig(
        threshold=safe_convert(os.getenv("VAD_THRESHOLD"), float, DEFAULT_VAD_THRESHOLD),
        prefix_padding_ms=safe_convert(
            os.getenv("VAD_PREFIX_PADDING_MS"), int, DEFAULT_VAD_PREFIX_PADDING_MS
        ),
        silence_duration_ms=safe_convert(
            os.getenv("VAD_SILENCE_DURATION_MS"), int, DEFAULT_VAD_SILENCE_DURATION_MS
        ),
    )


def load_session_defaults() -> SessionDefaults:
    """Load static session settings from environment variables."""
    _check_env_loaded()

    return SessionDefaults(
        voice=os.getenv("AUDIO_OS_VOICE", VOICE),
        transcription_model=os.getenv(
            "AUDIO_OS_TRANSCRIPTION_MODEL", DEFAULT_TRANSCRIPTION_MODEL
        ),
        temperature=safe_convert(
            os.getenv("AUDIO_OS_TEMPERATURE"), float, DEFAULT_TEMPERATURE
        ),
        max_output_tokens=_token_limit(os.getenv("AUDIO_OS_MAX_OUTPUT_TOKENS")),
    )


def load_dispatch_config() -> DispatchConfig:
    """Load function dispatch configuration from environment variables."""
    _check_env_loaded()

    return DispatchConfig(
        function_timeout=safe_convert(
            os.getenv("FUNCTION_TIMEOUT"), float, DEFAULT_FUNCTION_TIMEOUT
        ),
        call_history_size=safe_convert(
            os.getenv("FUNCTION_CALL_HISTORY"), int, DEFAULT_FUNCTION_CALL_HISTORY
        ),
    )


def load_logging_config() -> LoggingConfig:
    """Load logging configuration from environment variables."""
    _check_env_loaded()

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = LogLevel.INFO
    try:
        log_level = LogLevel(log_level_str)
    except ValueError:
        pass

    return LoggingConfig(
        level=log_level,
        format=os.getenv(
            "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ),
        log_dir=Path(os.getenv("LOG_DIR", "logs")),
        log_filename=os.getenv("LOG_FILENAME", "audioos.log"),
        max_log_size=safe_convert(os.getenv("LOG_MAX_SIZE"), int, 10 * 1024 * 1024),
        backup_count=safe_convert(os.getenv("LOG_BACKUP_COUNT"), int, 5),
        console_output=safe_convert(os.getenv("LOG_CONSOLE_OUTPUT"), bool, True),
        file_output=safe_convert(os.getenv("LOG_FILE_OUTPUT"), bool, True),
        redact_sensitive=safe_convert(os.getenv("LOG_REDACT_SENSITIVE"), bool, True),
    )


def load_security_config() -> SecurityConfig:
    """Load security configuration from environment variables."""
    _check_env_loaded()

    allowed_origins = os.getenv("ALLOWED_ORIGINS", "*")
    origins_list = [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]

    return SecurityConfig(allowed_origins=origins_list or ["*"])


def load_application_config() -> ApplicationConfig:
    """Load complete application configuration from environment variables."""
    _check_env_loaded()

    config = ApplicationConfig(
        server=load_server_config(),
        openai=load_openai_config(),
        websocket=load_websocket_config(),
        audio=load_audio_config(),
        vad=load_vad_config(),
        session=load_session_defaults(),
        dispatch=load_dispatch_config(),
        logging=load_logging_config(),
        security=load_security_config(),
    )

    # Validate configuration and raise exceptions for critical errors
    validation_errors = config.validate()
    if validation_errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(
            f"  - {error}" for error in validation_errors
        )
        raise ValueError(error_msg)

    return config


def get_environment_info() -> Dict[str, Any]:
    """Get information about current environment variables for debugging."""
    _check_env_loaded()

    return {
        "environment_variables_loaded": len(
            [
                k
                for k in os.environ.keys()
                if k.startswith(("OPENAI_", "VAD_", "AUDIO_", "WEBSOCKET_", "LOG_"))
            ]
        ),
        "dotenv_loaded": Path(".env").exists(),
        "current_environment": os.getenv("ENV", "production"),
        "openai_api_key_set": bool(os.getenv("OPENAI_API_KEY")),
    }
