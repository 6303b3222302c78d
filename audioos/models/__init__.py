"""Wire, tool schema and dispatch result models."""

from .openai_api import (
    ClientEventType,
    ConversationItemCreateEvent,
    ErrorEvent,
    FunctionCallArgumentsDoneEvent,
    FunctionCallOutputItem,
    InputAudioBufferAppendEvent,
    InputAudioTranscriptionCompletedEvent,
    ResponseAudioDeltaEvent,
    ResponseAudioDoneEvent,
    ResponseCreateEvent,
    ServerEventType,
    SessionConfig,
    SessionCreatedEvent,
    SessionUpdateEvent,
    UnknownEvent,
    UpstreamEvent,
    parse_upstream_event,
)
from .system_action import ActionTag, FunctionCall, FunctionResult, SystemAction, ToolName
from .tool_models import OpenAITool, ToolParameter, ToolParameters
