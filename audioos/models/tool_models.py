"""
OpenAI Function Tool Models

Base Pydantic models for defining OpenAI function tools in a type-safe way.
The Audio OS tool definitions in ``audioos.agents.audio_os_agent`` extend these.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


class ToolParameter(BaseModel):
    """Base model for tool parameters."""

    type: str
    description: Optional[str] = None
    enum: Optional[List[str]] = None
    default: Optional[Any] = None

    def model_dump(self, **kwargs):
        # Remove fields that are None
        return _drop_none(super().model_dump(**kwargs))


class ToolParameters(BaseModel):
    """Model for tool parameters schema."""

    type: str = "object"
    properties: Dict[str, ToolParameter]
    required: Optional[List[str]] = None

    def model_dump(self, **kwargs):
        data = super().model_dump(**kwargs)
        data["properties"] = {
            key: _drop_none(param) for key, param in data["properties"].items()
        }
        # Remove required field if it's None to avoid validation errors
        if data.get("required") is None:
            data.pop("required", None)
        return data


class OpenAITool(BaseModel):
    """Model for OpenAI function tool definition."""

    type: str = "function"
    name: str
    description: str
    parameters: ToolParameters

    def model_dump(self, **kwargs):
        data = super().model_dump(**kwargs)
        # Ensure parameters are properly serialized
        data["parameters"] = self.parameters.model_dump()
        return data
