"""
Function call dispatch for the Audio OS relay.

The FunctionHandler owns the registry of tool implementations for one relay
session. When the upstream model finishes emitting a tool call
(``response.function_call_arguments.done``) the handler:

    1. Decodes the JSON arguments and builds a FunctionCall
    2. Dispatches it to the registered implementation, converting unknown
       tools, invalid arguments, handler exceptions and timeouts into a
       failed FunctionResult
    3. Sends the result upstream as a ``function_call_output`` item with the
       same ``call_id``
    4. Sends ``response.create`` so the model continues the conversation
    5. Returns a SystemAction for the relay to broadcast to the client

Each call_id is handled at most once; a bounded memory of recent ids
suppresses duplicates.

Usage Example:
    ```python
    handler = FunctionHandler(upstream_websocket, logger=logger)
    register_audio_os_functions(handler, SystemFunctions())

    result = await handler.dispatch("get_weather", {"location": "Paris"})
    action = await handler.handle_function_call_arguments_done(event)
    ```
"""

import asyncio
import json
import logging
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Optional, Union

from audioos.config.constants import DEFAULT_FUNCTION_CALL_HISTORY, DEFAULT_FUNCTION_TIMEOUT
from audioos.models.openai_api import (
    ConversationItemCreateEvent,
    FunctionCallArgumentsDoneEvent,
    FunctionCallOutputItem,
    ResponseCreateEvent,
)
from audioos.models.system_action import FunctionCall, FunctionResult, SystemAction

module_logger = logging.getLogger(__name__)

FunctionImpl = Callable[[Dict[str, Any]], Any]


class FunctionHandler:
    """
    Dispatches tool calls from the realtime API to local implementations.

    Attributes:
        function_registry: Mapping of tool names to implementations (sync or async)
        realtime_websocket: Upstream connection used to send results
        function_timeout: Seconds an async implementation may run before it is abandoned
    """

    def __init__(
        self,
        realtime_websocket=None,
        logger: Optional[logging.Logger] = None,
        function_timeout: float = DEFAULT_FUNCTION_TIMEOUT,
        call_history_size: int = DEFAULT_FUNCTION_CALL_HISTORY,
    ):
        self.realtime_websocket = realtime_websocket
        self.logger = logger or module_logger
        self.function_timeout = function_timeout
        self.call_history_size = call_history_size
        self.function_registry: Dict[str, FunctionImpl] = {}
        self._handled_calls: "OrderedDict[str, None]" = OrderedDict()

    def register_function(self, name: str, func: FunctionImpl) -> None:
        """
        Register a function in the function registry.

        Args:
            name: The tool name as it will be called by the model
            func: The implementation (can be sync or async)
        """
        self.function_registry[name] = func
        self.logger.debug(f"Registered function: {name}")

    def unregister_function(self, name: str) -> bool:
        if name in self.function_registry:
            del self.function_registry[name]
            self.logger.debug(f"Unregistered function: {name}")
            return True
        return False

    def get_registered_functions(self) -> List[str]:
        return list(self.function_registry.keys())

    async def dispatch(self, name: str, arguments: Dict[str, Any]) -> FunctionResult:
        """
        Execute a tool and return its result. Never raises.

        Args:
            name: Tool name
            arguments: Decoded tool arguments

        Returns:
            The tool's FunctionResult, or a failed result for unknown tools,
            handler exceptions and timeouts
        """
        func = self.function_registry.get(name)
        if func is None:
            self.logger.warning(f"Unknown function requested: {name}")
            return FunctionResult.failure(f"Unknown function: {name}")

        try:
            if not isinstance(arguments, dict):
                raise TypeError("arguments must be a JSON object")
            if asyncio.iscoroutinefunction(func):
                result = await asyncio.wait_for(func(arguments), self.function_timeout)
            else:
                result = func(arguments)
            if isinstance(result, dict):
                result = FunctionResult(**result)
            if not isinstance(result, FunctionResult):
                raise TypeError(f"unexpected result type {type(result).__name__}")
        except asyncio.TimeoutError:
            self.logger.error(f"Function {name} timed out after {self.function_timeout}s")
            return FunctionResult.failure(
                f"Error executing {name}: timed out after {self.function_timeout} seconds"
            )
        except Exception as e:
            self.logger.error(f"Function {name} failed: {e}")
            return FunctionResult.failure(f"Error executing {name}: {e}")

        self.logger.info(f"Function {name} executed: {result.message}")
        return result

    async def handle_function_call_arguments_done(
        self,
        event: Union[Dict[str, Any], FunctionCallArgumentsDoneEvent],
    ) -> Optional[SystemAction]:
        """
        Handle a completed tool call from the realtime API.

        Returns:
            The SystemAction to broadcast to the client, or None when the
            event was a duplicate or lacked a call_id
        """
        if isinstance(event, dict):
            call_id = event.get("call_id")
            name = event.get("name", "")
            arguments_str = event.get("arguments") or "{}"
        else:
            call_id, name, arguments_str = event.call_id, event.name, event.arguments or "{}"

        if not call_id:
            self.logger.warning(f"Function call done received without call_id: {name}")
            return None
        if self._already_handled(call_id):
            self.logger.warning(f"Ignoring duplicate function call {call_id} ({name})")
            return None

        if name not in self.function_registry:
            # Unknown tools are reported as such whatever their arguments
            result = await self.dispatch(name, {})
        else:
            result = await self._dispatch_encoded(name, call_id, arguments_str)

        await self.send_function_result(call_id, result)
        return SystemAction.from_result(result, call_id=call_id)

    async def _dispatch_encoded(self, name: str, call_id: str, arguments_str: str) -> FunctionResult:
        try:
            arguments = json.loads(arguments_str)
        except json.JSONDecodeError as e:
            self.logger.error(f"Failed to parse arguments for {name} ({call_id}): {e}")
            arguments = None

        if not isinstance(arguments, dict):
            return FunctionResult.failure(f"Error executing {name}: arguments must be a JSON object")

        call = FunctionCall(name=name, call_id=call_id, arguments=arguments)
        self.logger.info(f"Executing function: {call.name} (call_id={call.call_id})")
        return await self.dispatch(call.name, call.arguments)

    async def send_function_result(self, call_id: str, result: FunctionResult) -> None:
        """Send the function output upstream, then trigger the next response."""
        if self.realtime_websocket is None:
            raise RuntimeError("No upstream connection to send function results to")

        output_event = ConversationItemCreateEvent(
            item=FunctionCallOutputItem(call_id=call_id, output=result.to_output())
        )
        await self.realtime_websocket.send(output_event.to_json())
        await self.realtime_websocket.send(ResponseCreateEvent().to_json())
        self.logger.debug(f"Function result sent for {call_id}, response requested")

    def _already_handled(self, call_id: str) -> bool:
        if call_id in self._handled_calls:
            return True
        self._handled_calls[call_id] = None
        while len(self._handled_calls) > self.call_history_size:
            self._handled_calls.popitem(last=False)
        return False

    def clear_call_history(self) -> None:
        self._handled_calls.clear()
