"""
Models for dispatched function calls and their results.

A ``FunctionCall`` is built from a ``response.function_call_arguments.done``
event, dispatched once, and yields a ``FunctionResult``. The result is sent
upstream as the JSON ``output`` of a ``function_call_output`` item and
downstream to the client wrapped in a ``SystemAction``.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from audioos.config.constants import SYSTEM_ACTION_EVENT


class ToolName:
    """Names of the tools the Audio OS assistant can call."""

    OPEN_APPLICATION = "open_application"
    CREATE_FILE = "create_file"
    DELETE_FILE = "delete_file"
    GET_SYSTEM_INFO = "get_system_info"
    SET_REMINDER = "set_reminder"
    CONTROL_MEDIA = "control_media"
    ADJUST_SETTINGS = "adjust_settings"
    SEARCH_FILES = "search_files"
    GET_WEATHER = "get_weather"

    ALL = (
        OPEN_APPLICATION,
        CREATE_FILE,
        DELETE_FILE,
        GET_SYSTEM_INFO,
        SET_REMINDER,
        CONTROL_MEDIA,
        ADJUST_SETTINGS,
        SEARCH_FILES,
        GET_WEATHER,
    )


class ActionTag:
    """UI-facing action tags carried by function results."""

    OPEN_APP = "open_app"
    CREATE_FILE = "create_file"
    DELETE_FILE = "delete_file"
    SYSTEM_INFO = "system_info"
    SET_REMINDER = "set_reminder"
    CONTROL_MEDIA = "control_media"
    ADJUST_SETTINGS = "adjust_settings"
    SEARCH_FILES = "search_files"
    GET_WEATHER = "get_weather"
    ERROR = "error"


class FunctionCall(BaseModel):
    """A single tool invocation requested by the model."""

    name: str
    call_id: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


class FunctionResult(BaseModel):
    """Outcome of dispatching a FunctionCall."""

    success: bool
    message: str
    action: str
    data: Optional[Any] = None

    @classmethod
    def failure(cls, message: str) -> "FunctionResult":
        return cls(success=False, message=message, action=ActionTag.ERROR, data=None)

    def to_output(self) -> str:
        """Serialize as the ``output`` string of a function_call_output item."""
        return json.dumps(self.model_dump(), ensure_ascii=False)


class SystemAction(FunctionResult):
    """Client-facing broadcast describing an executed tool result."""

    type: Literal["system.action"] = SYSTEM_ACTION_EVENT
    call_id: Optional[str] = None
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @classmethod
    def from_result(
        cls, result: FunctionResult, call_id: Optional[str] = None
    ) -> "SystemAction":
        return cls(call_id=call_id, **result.model_dump())

    def to_json(self) -> str:
        return self.model_dump_json()
