"""
Pydantic models for OpenAI Realtime API message structures.

This module provides type-safe models for the messages exchanged with the OpenAI Realtime API,
covering the client events the relay emits and the server events it inspects.

The relay forwards every upstream frame byte-for-byte; the models here are only used to
*read* frames (via ``parse_upstream_event``) and to *build* the few frames the relay
originates itself (session.update, conversation.item.create, response.create).
Unknown server event types parse into ``UnknownEvent`` so new upstream events never
break the session.
"""

import json
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class ClientEventType(str, Enum):
    """Types of events that can be sent to the server."""

    SESSION_UPDATE = "session.update"
    INPUT_AUDIO_BUFFER_APPEND = "input_audio_buffer.append"
    INPUT_AUDIO_BUFFER_COMMIT = "input_audio_buffer.commit"
    INPUT_AUDIO_BUFFER_CLEAR = "input_audio_buffer.clear"
    CONVERSATION_ITEM_CREATE = "conversation.item.create"
    RESPONSE_CREATE = "response.create"
    RESPONSE_CANCEL = "response.cancel"


class ServerEventType(str, Enum):
    """Types of events received from the server."""

    ERROR = "error"
    SESSION_CREATED = "session.created"
    SESSION_UPDATED = "session.updated"
    INPUT_AUDIO_BUFFER_SPEECH_STARTED = "input_audio_buffer.speech_started"
    INPUT_AUDIO_BUFFER_SPEECH_STOPPED = "input_audio_buffer.speech_stopped"
    INPUT_AUDIO_BUFFER_COMMITTED = "input_audio_buffer.committed"
    RESPONSE_CREATED = "response.created"
    RESPONSE_DONE = "response.done"
    RESPONSE_AUDIO_DELTA = "response.audio.delta"
    RESPONSE_AUDIO_DONE = "response.audio.done"
    RESPONSE_AUDIO_TRANSCRIPT_DELTA = "response.audio_transcript.delta"
    RESPONSE_AUDIO_TRANSCRIPT_DONE = "response.audio_transcript.done"
    RESPONSE_FUNCTION_CALL_ARGUMENTS_DELTA = "response.function_call_arguments.delta"
    RESPONSE_FUNCTION_CALL_ARGUMENTS_DONE = "response.function_call_arguments.done"
    CONVERSATION_ITEM_INPUT_AUDIO_TRANSCRIPTION_COMPLETED = (
        "conversation.item.input_audio_transcription.completed"
    )
    RATE_LIMITS_UPDATED = "rate_limits.updated"


# Session-related models


class SessionConfig(BaseModel):
    """Configuration for a Realtime API Session.

    This object defines the configuration sent once per session, including
    modalities, audio formats, VAD settings, and tools.
    """

    modalities: List[str] = Field(default=["text", "audio"])
    instructions: Optional[str] = None
    voice: Optional[str] = None
    input_audio_format: Optional[str] = None  # "pcm16" or "g711"
    output_audio_format: Optional[str] = None
    input_audio_transcription: Optional[Dict[str, Any]] = None
    turn_detection: Optional[Dict[str, Any]] = None  # {"type": "server_vad", ...}
    tools: Optional[List[Dict[str, Any]]] = None
    tool_choice: Optional[Literal["auto", "none", "required"]] = None
    temperature: Optional[float] = None
    max_response_output_tokens: Optional[Union[int, Literal["inf"]]] = None

    model_config = ConfigDict(frozen=True)


# Client events


class ClientEvent(BaseModel):
    """Base model for events sent to the server."""

    type: str
    event_id: Optional[str] = None

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)


class SessionUpdateEvent(ClientEvent):
    """Event to update session configuration.

    The relay sends exactly one of these per session, immediately after the
    upstream socket opens. The server responds with session.updated.
    """

    type: Literal["session.update"] = "session.update"
    session: SessionConfig


class InputAudioBufferAppendEvent(ClientEvent):
    """Event to append audio to the input buffer.

    In server VAD mode the server decides when to commit the buffer.
    """

    type: Literal["input_audio_buffer.append"] = "input_audio_buffer.append"
    audio: str  # Base64 encoded PCM16


class FunctionCallOutputItem(BaseModel):
    """Conversation item carrying the result of a function call."""

    type: Literal["function_call_output"] = "function_call_output"
    call_id: str
    output: str  # JSON-encoded result


class ConversationItemCreateEvent(ClientEvent):
    """Event to create a conversation item."""

    type: Literal["conversation.item.create"] = "conversation.item.create"
    item: FunctionCallOutputItem
    previous_item_id: Optional[str] = None


class ResponseCreateEvent(ClientEvent):
    """Event to create a model response.

    Sent with no options after a function output so the model continues with
    the session's own settings.
    """

    type: Literal["response.create"] = "response.create"
    response: Optional[Dict[str, Any]] = None


# Server events


class ServerEvent(BaseModel):
    """Base model for events received from the server."""

    type: str
    event_id: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class SessionCreatedEvent(ServerEvent):
    """Emitted as the first server event of a new connection."""

    type: Literal["session.created"] = "session.created"
    session: Dict[str, Any] = Field(default_factory=dict)


class ResponseAudioDeltaEvent(ServerEvent):
    """A base64 PCM16 chunk of synthesized audio."""

    type: Literal["response.audio.delta"] = "response.audio.delta"
    response_id: Optional[str] = None
    item_id: Optional[str] = None
    delta: str


class ResponseAudioDoneEvent(ServerEvent):
    """Synthesized audio for the current response item is complete."""

    type: Literal["response.audio.done"] = "response.audio.done"
    response_id: Optional[str] = None
    item_id: Optional[str] = None


class InputAudioTranscriptionCompletedEvent(ServerEvent):
    """Final transcript of the user's spoken turn."""

    type: Literal["conversation.item.input_audio_transcription.completed"] = (
        "conversation.item.input_audio_transcription.completed"
    )
    item_id: Optional[str] = None
    transcript: str = ""


class FunctionCallArgumentsDoneEvent(ServerEvent):
    """The model finished emitting arguments for a tool call.

    ``arguments`` is the complete JSON-encoded arguments object.
    """

    type: Literal["response.function_call_arguments.done"] = (
        "response.function_call_arguments.done"
    )
    response_id: Optional[str] = None
    item_id: Optional[str] = None
    call_id: str
    name: str
    arguments: str = "{}"


class ResponseCreatedEvent(ServerEvent):
    type: Literal["response.created"] = "response.created"
    response: Dict[str, Any] = Field(default_factory=dict)


class ResponseDoneEvent(ServerEvent):
    type: Literal["response.done"] = "response.done"
    response: Dict[str, Any] = Field(default_factory=dict)


class ErrorEvent(ServerEvent):
    """Error reported by the upstream API or by the relay itself.

    Upstream errors nest the details under ``error``; relay-originated
    errors carry a flat ``message``.
    """

    type: Literal["error"] = "error"
    message: Optional[str] = None
    error: Optional[Dict[str, Any]] = None

    @property
    def description(self) -> str:
        if self.message:
            return self.message
        if self.error:
            return str(self.error.get("message") or self.error)
        return "Unknown error"


class UnknownEvent(ServerEvent):
    """Any event type the relay does not interpret; forwarded untouched."""


UpstreamEvent = Union[
    SessionCreatedEvent,
    ResponseAudioDeltaEvent,
    ResponseAudioDoneEvent,
    InputAudioTranscriptionCompletedEvent,
    FunctionCallArgumentsDoneEvent,
    ResponseCreatedEvent,
    ResponseDoneEvent,
    ErrorEvent,
    UnknownEvent,
]

UPSTREAM_EVENT_MODELS: Dict[str, type] = {
    ServerEventType.SESSION_CREATED.value: SessionCreatedEvent,
    ServerEventType.RESPONSE_AUDIO_DELTA.value: ResponseAudioDeltaEvent,
    ServerEventType.RESPONSE_AUDIO_DONE.value: ResponseAudioDoneEvent,
    ServerEventType.CONVERSATION_ITEM_INPUT_AUDIO_TRANSCRIPTION_COMPLETED.value: InputAudioTranscriptionCompletedEvent,
    ServerEventType.RESPONSE_FUNCTION_CALL_ARGUMENTS_DONE.value: FunctionCallArgumentsDoneEvent,
    ServerEventType.RESPONSE_CREATED.value: ResponseCreatedEvent,
    ServerEventType.RESPONSE_DONE.value: ResponseDoneEvent,
    ServerEventType.ERROR.value: ErrorEvent,
}


def parse_upstream_event(raw: Union[str, bytes, Dict[str, Any]]) -> UpstreamEvent:
    """Parse a server frame into its tagged model.

    Frames whose type is not modelled, or whose payload does not match the
    model for its type, become ``UnknownEvent`` so they can still be forwarded.

    Raises:
        ValueError: If ``raw`` is not a JSON object with a string ``type``.
    """
    data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        raise ValueError("Upstream frame is not a typed JSON object")

    model = UPSTREAM_EVENT_MODELS.get(data["type"])
    if model is None:
        return UnknownEvent(**data)
    try:
        return model(**data)
    except ValidationError:
        return UnknownEvent(**data)
