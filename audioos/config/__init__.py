"""
Configuration module for the Audio OS relay.

This module provides centralized configuration management for the entire application,
including constants, logging setup, and environment-based configuration.

Usage:

```python
from audioos.config import get_config, load_env_file
load_env_file()
config = get_config()
print(f"Relay: {config.server.host}:{config.server.port}{config.server.ws_path}")

from audioos.config.logging_config import configure_logging
logger = configure_logging("my_module")
```
"""

from .constants import *
from .env_loader import load_env_file
from .logging_config import configure_logging
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
from .settings import (
    audio_config,
    dispatch_config,
    get_config,
    is_development,
    is_production,
    logging_config,
    openai_config,
    reload_config,
    security_config,
    server_config,
    session_defaults,
    set_config,
    vad_config,
    validate_configuration,
    websocket_config,
)

__all__ = [
    # Core configuration
    "get_config",
    "reload_config",
    "set_config",
    "load_env_file",
    # Domain configs
    "server_config",
    "openai_config",
    "websocket_config",
    "audio_config",
    "vad_config",
    "session_defaults",
    "dispatch_config",
    "logging_config",
    "security_config",
    # Utilities
    "validate_configuration",
    "is_development",
    "is_production",
    # Models
    "ApplicationConfig",
    "ServerConfig",
    "OpenAIConfig",
    "WebSocketConfig",
    "AudioConfig",
    "VADConfig",
    "SessionDefaults",
    "DispatchConfig",
    "LoggingConfig",
    "SecurityConfig",
    "Environment",
    "LogLevel",
    # Logging
    "configure_logging",
]
