"""
Centralized error handling for the Audio OS relay and client.

This module categorizes failures by where they happened (client socket,
upstream socket, function dispatch, audio device, session lifecycle),
logs them at a severity-appropriate level and fans them out to registered
callbacks. It also defines the exception classes raised across the package.

Usage:
    async def notify(error_info: ErrorInfo):
        ...

    error_handler = ErrorHandler(logger)
    error_handler.register_handler(notify, ErrorContext.UPSTREAM)

    await error_handler.handle_error(
        exception,
        context=ErrorContext.UPSTREAM,
        severity=ErrorSeverity.HIGH,
        operation="receive_from_upstream",
    )
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class RelayError(Exception):
    """Base exception for Audio OS relay errors."""

    pass


class UpstreamConnectionError(RelayError):
    """Raised when the upstream realtime connection fails or is rejected."""

    pass


class FunctionDispatchError(RelayError):
    """Raised by tool handlers when a call cannot be executed."""

    pass


class ErrorContext(Enum):
    """Error context types for categorizing errors."""

    WEBSOCKET = "websocket"
    UPSTREAM = "upstream"
    DISPATCH = "dispatch"
    AUDIO = "audio"
    SESSION = "session"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


_LOG_LEVELS = {
    ErrorSeverity.LOW: logging.DEBUG,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


@dataclass
class ErrorInfo:
    """Simple error information structure."""

    error: Exception
    context: ErrorContext
    severity: ErrorSeverity
    operation: str
    metadata: Dict[str, Any]
    timestamp: datetime


class ErrorHandler:
    """
    Error handling with per-context callbacks and simple statistics.

    One instance is created per relay session (or per client) so counts and
    callbacks never leak between sessions.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._handlers: Dict[ErrorContext, List[Callable]] = {
            context: [] for context in ErrorContext
        }
        self._global_handlers: List[Callable] = []
        self._error_count: Dict[ErrorContext, int] = {
            context: 0 for context in ErrorContext
        }

    def register_handler(
        self,
        handler: Callable[[ErrorInfo], Any],
        context: Optional[ErrorContext] = None,
    ) -> None:
        """
        Register an error handler for a specific context or globally.

        Args:
            handler: Error handler function that takes ErrorInfo as parameter
            context: Error context to handle (None for global handlers)
        """
        if context is None:
            self._global_handlers.append(handler)
            self.logger.debug("Registered global error handler")
        else:
            self._handlers[context].append(handler)
            self.logger.debug(f"Registered error handler for {context.value}")

    def unregister_handler(
        self, handler: Callable, context: Optional[ErrorContext] = None
    ) -> bool:
        """Unregister an error handler; returns True if it was registered."""
        target_list = (
            self._global_handlers if context is None else self._handlers[context]
        )

        if handler in target_list:
            target_list.remove(handler)
            self.logger.debug(
                f"Unregistered error handler for {context.value if context else 'global'}"
            )
            return True
        return False

    async def handle_error(
        self,
        error: Exception,
        context: ErrorContext = ErrorContext.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        operation: str = "unknown",
        **metadata,
    ) -> ErrorInfo:
        """
        Record, log and fan out an error.

        Args:
            error: The exception that occurred
            context: Error context for categorization
            severity: Error severity level
            operation: Name of the operation that failed
            **metadata: Additional context-specific metadata

        Returns:
            The ErrorInfo passed to the callbacks
        """
        error_info = ErrorInfo(
            error=error,
            context=context,
            severity=severity,
            operation=operation,
            metadata=metadata,
            timestamp=datetime.now(),
        )

        self._error_count[context] += 1

        self.logger.log(
            _LOG_LEVELS[severity], f"Error in {context.value} ({operation}): {error}"
        )

        await self._execute_handlers(self._handlers[context], error_info)
        await self._execute_handlers(self._global_handlers, error_info)
        return error_info

    async def _execute_handlers(
        self, handlers: List[Callable], error_info: ErrorInfo
    ) -> None:
        """Execute error handlers with proper error isolation."""
        for handler in handlers:
            try:
                if asyncio.iscoroutinefunction(handler):
                    await handler(error_info)
                else:
                    handler(error_info)
            except Exception as handler_error:
                self.logger.error(f"Error in error handler: {handler_error}")

    def get_error_stats(self) -> Dict[str, Any]:
        """Get simple error statistics."""
        return {
            "error_counts": {
                ctx.value: count for ctx, count in self._error_count.items()
            },
            "total_errors": sum(self._error_count.values()),
            "registered_handlers": {
                ctx.value: len(handlers) for ctx, handlers in self._handlers.items()
            },
            "global_handlers": len(self._global_handlers),
        }

    def reset_stats(self) -> None:
        """Reset error statistics."""
        self._error_count = {context: 0 for context in ErrorContext}
