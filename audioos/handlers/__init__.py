"""
Realtime event handling for the Audio OS relay.

Components:
- EventRouter: Routes realtime events to registered handlers
- FunctionHandler: Dispatches tool calls and returns results upstream
- SystemFunctions: Simulated system actions behind the tools
- ErrorHandler: Categorized error logging and callbacks
"""

from .error_handler import (
    ErrorContext,
    ErrorHandler,
    ErrorInfo,
    ErrorSeverity,
    FunctionDispatchError,
    RelayError,
    UpstreamConnectionError,
)
from .event_router import EventRouter
from .function_handler import FunctionHandler
from .providers import (
    FallbackWeatherProvider,
    RandomWeatherProvider,
    SystemClock,
    SystemInfoProvider,
    WeatherProvider,
)
from .system_functions import SystemFunctions
