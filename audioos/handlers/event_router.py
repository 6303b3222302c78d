"""Event router for realtime server events.

Both ends of the Audio OS connection inspect the same stream of realtime
events: the relay reacts to function calls and response lifecycle events,
and the client reacts to session, audio and transcript events. Each side
owns an EventRouter and registers the handlers it needs.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from audioos.models.openai_api import ServerEventType

module_logger = logging.getLogger(__name__)


class EventRouter:
    """Route parsed realtime events to registered handlers.

    Features:
    - Multiple handlers per event type with priority ordering
    - Optional fallback handler for unregistered event types
    - Error isolation so one failing handler does not affect the others

    Handlers receive the event dict and may be sync or async.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or module_logger
        self.handlers: Dict[str, List[Tuple[int, Callable]]] = {}
        self.fallback_handler: Optional[Callable] = None

    def register_handler(
        self, event_type: str, handler: Callable, priority: int = 0
    ) -> None:
        """Register a handler for an event type.

        Args:
            event_type: The realtime event type to handle
            handler: The handler function to call for this event type
            priority: Handler priority (higher numbers execute first)
        """
        if isinstance(event_type, ServerEventType):
            event_type = event_type.value
        self.handlers.setdefault(event_type, []).append((priority, handler))
        self.handlers[event_type].sort(key=lambda x: x[0], reverse=True)
        self.logger.debug(
            f"Registered handler for event type: {event_type} (priority: {priority})"
        )

    def unregister_handler(self, event_type: str, handler: Callable) -> bool:
        """Unregister an event handler; returns True if it was found."""
        if isinstance(event_type, ServerEventType):
            event_type = event_type.value
        handlers = self.handlers.get(event_type, [])
        for i, (_, h) in enumerate(handlers):
            if h == handler:
                handlers.pop(i)
                self.logger.debug(f"Unregistered handler for event type: {event_type}")
                return True
        return False

    def set_fallback_handler(self, handler: Optional[Callable]) -> None:
        self.fallback_handler = handler

    async def dispatch(self, data: Dict[str, Any]) -> None:
        """Dispatch an event dict to its handlers.

        Args:
            data: The event data containing the event type and other fields
        """
        event_type = data.get("type", "")

        if event_type == ServerEventType.ERROR.value:
            self._log_error_event(data)
        elif event_type == ServerEventType.RESPONSE_DONE.value:
            self._log_failed_response(data)
        elif event_type == ServerEventType.RESPONSE_AUDIO_DELTA.value:
            self.logger.debug(
                f"Audio event: {event_type} - delta size: {len(data.get('delta', ''))}"
            )
        else:
            self.logger.debug(f"Received realtime event: {event_type}")

        handlers = self.handlers.get(event_type, [])
        if handlers:
            await self._execute_handlers(handlers, data, f"event {event_type}")
        elif self.fallback_handler is not None:
            await self._execute_handlers(
                [(0, self.fallback_handler)], data, f"fallback for {event_type}"
            )

    def _log_error_event(self, data: Dict[str, Any]) -> None:
        error = data.get("error") or {}
        code = error.get("code") or data.get("code", "unknown")
        message = error.get("message") or data.get("message", "No message provided")
        self.logger.error(f"Realtime error event: code={code}, message='{message}'")

    def _log_failed_response(self, data: Dict[str, Any]) -> None:
        response = data.get("response") or {}
        if response.get("status") != "failed":
            return
        error_info = (response.get("status_details") or {}).get("error") or {}
        if "insufficient_quota" in (error_info.get("type"), error_info.get("code")):
            self.logger.error(
                "Realtime API quota exceeded; no audio will be generated until billing is resolved"
            )
        else:
            self.logger.error(
                f"Response failed with error: {error_info.get('message', 'Unknown error')}"
            )

    async def _execute_handlers(
        self, handlers: List[Tuple[int, Callable]], data: Dict[str, Any], context: str
    ) -> None:
        """Execute multiple handlers with error isolation."""
        for priority, handler in handlers:
            try:
                if asyncio.iscoroutinefunction(handler):
                    await handler(data)
                else:
                    handler(data)
            except Exception as e:
                self.logger.error(f"Error in {context} handler (priority {priority}): {e}")

    def get_handler_stats(self) -> Dict[str, Any]:
        """Get statistics about registered handlers."""
        return {
            "total": sum(len(handlers) for handlers in self.handlers.values()),
            "by_type": {
                event_type: len(handlers)
                for event_type, handlers in self.handlers.items()
            },
            "has_fallback": self.fallback_handler is not None,
        }
