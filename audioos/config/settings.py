"""
Centralized configuration settings for the Audio OS relay.

This module provides the main configuration interface for the entire application,
including singleton access to configuration and domain-specific accessors.
"""

from typing import List, Optional

from .env_loader import load_application_config
from .models import (
    ApplicationConfig,
    AudioConfig,
    DispatchConfig,
    LoggingConfig,
    OpenAIConfig,
    SecurityConfig,
    ServerConfig,
    SessionDefaults,
    VADConfig,
    WebSocketConfig,
)

# Global configuration instance
_config: Optional[ApplicationConfig] = None


def get_config() -> ApplicationConfig:
    """Get the global application configuration instance."""
    global _config
    if _config is None:
        _config = load_application_config()
    return _config


def reload_config() -> ApplicationConfig:
    """Reload configuration from environment variables."""
    global _config
    _config = load_application_config()
    return _config


def set_config(config: Optional[ApplicationConfig]) -> None:
    """Set a custom configuration instance (useful for testing)."""
    global _config
    _config = config


def server_config() -> ServerConfig:
    return get_config().server


def openai_config() -> OpenAIConfig:
    return get_config().openai


def websocket_config() -> WebSocketConfig:
    return get_config().websocket


def audio_config() -> AudioConfig:
    return get_config().audio


def vad_config() -> VADConfig:
    return get_config().vad


def session_defaults() -> SessionDefaults:
    return get_config().session


def dispatch_config() -> DispatchConfig:
    return get_config().dispatch


def logging_config() -> LoggingConfig:
    return get_config().logging


def security_config() -> SecurityConfig:
    return get_config().security


def validate_configuration() -> List[str]:
    """Validate the current configuration and return any errors."""
    config = get_config()
    errors = config.validate()
    if not config.openai.api_key:
        errors.append(
            "OpenAI API key is not set. Set OPENAI_API_KEY before opening relay sessions."
        )
    return errors


def is_development() -> bool:
    """Check if running in development environment."""
    return get_config().is_development()


def is_production() -> bool:
    """Check if running in production environment."""
    return get_config().is_production()
