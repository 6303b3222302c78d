"""
ARIA, the Audio Operating System assistant.

Defines the instructions, the nine tool schemas and the static session
configuration sent upstream once per relay session, plus the registration
of the tool implementations with a FunctionHandler.
"""

from typing import Any, Dict, List, Optional

from audioos.config.constants import DEFAULT_AUDIO_ENCODING
from audioos.config.models import ApplicationConfig
from audioos.handlers.system_functions import (
    FILE_TYPES,
    INFO_TYPES,
    MEDIA_ACTIONS,
    SETTINGS,
    SystemFunctions,
)
from audioos.models.openai_api import SessionConfig
from audioos.models.system_action import ToolName
from audioos.models.tool_models import OpenAITool, ToolParameter, ToolParameters

SESSION_PROMPT = """You are ARIA, an advanced Audio Operating System. You can control various system functions through voice commands.

Core capabilities:
1. File Management: Create, delete, move, copy files and folders
2. Application Control: Open, close, switch between applications
3. System Settings: Adjust volume, brightness, network settings
4. Information Retrieval: Weather, time, system status
5. Task Management: Set reminders, timers, calendar events
6. Communication: Send messages, make calls
7. Media Control: Play music, videos, control playback

Respond naturally and perform the requested actions. Always confirm what you're doing and provide audio feedback. Be helpful and efficient.

Available system functions:
- open_application: Open any application
- create_file: Create files or folders
- delete_file: Delete files or folders
- get_system_info: Get system status, time, weather
- set_reminder: Create reminders or alarms
- control_media: Play, pause, skip music/video
- adjust_settings: Change volume, brightness, etc.
- search_files: Find files and folders
- get_weather: Get weather information"""

# ==============================
# Tool Parameters
# ==============================


class OpenApplicationParameters(ToolParameters):
    properties: Dict[str, ToolParameter] = {
        "app_name": ToolParameter(
            type="string", description="Name of the application to open"
        ),
        "parameters": ToolParameter(
            type="string", description="Optional parameters for the application"
        ),
    }
    required: Optional[List[str]] = ["app_name"]


class CreateFileParameters(ToolParameters):
    properties: Dict[str, ToolParameter] = {
        "name": ToolParameter(type="string", description="Name of the file or folder"),
        "type": ToolParameter(
            type="string",
            enum=list(FILE_TYPES),
            description="Type of item to create",
        ),
        "content": ToolParameter(
            type="string", description="Content for the file (if creating a file)"
        ),
        "location": ToolParameter(type="string", description="Where to create the item"),
    }
    required: Optional[List[str]] = ["name", "type"]


class DeleteFileParameters(ToolParameters):
    properties: Dict[str, ToolParameter] = {
        "path": ToolParameter(
            type="string", description="Path to the file or folder to delete"
        ),
        "confirm": ToolParameter(type="boolean", description="Confirmation to delete"),
    }
    required: Optional[List[str]] = ["path"]


class GetSystemInfoParameters(ToolParameters):
    properties: Dict[str, ToolParameter] = {
        "info_type": ToolParameter(
            type="string",
            enum=list(INFO_TYPES),
            description="Type of system information to retrieve",
        ),
    }
    required: Optional[List[str]] = ["info_type"]


class SetReminderParameters(ToolParameters):
    properties: Dict[str, ToolParameter] = {
        "title": ToolParameter(type="string", description="Title of the reminder"),
        "time": ToolParameter(
            type="string", description="When to remind (relative or absolute time)"
        ),
        "description": ToolParameter(type="string", description="Additional details"),
    }
    required: Optional[List[str]] = ["title", "time"]


class ControlMediaParameters(ToolParameters):
    properties: Dict[str, ToolParameter] = {
        "action": ToolParameter(
            type="string",
            enum=list(MEDIA_ACTIONS),
            description="Media control action",
        ),
        "media": ToolParameter(
            type="string", description="Specific media to play (optional)"
        ),
    }
    required: Optional[List[str]] = ["action"]


class AdjustSettingsParameters(ToolParameters):
    properties: Dict[str, ToolParameter] = {
        "setting": ToolParameter(
            type="string", enum=list(SETTINGS), description="Setting to adjust"
        ),
        "value": ToolParameter(
            type="string",
            description="New value or action (on/off, increase/decrease, specific value)",
        ),
    }
    required: Optional[List[str]] = ["setting", "value"]


class SearchFilesParameters(ToolParameters):
    properties: Dict[str, ToolParameter] = {
        "query": ToolParameter(type="string", description="Search query"),
        "location": ToolParameter(
            type="string", description="Where to search (optional)"
        ),
        "file_type": ToolParameter(
            type="string", description="File type filter (optional)"
        ),
    }
    required: Optional[List[str]] = ["query"]


class GetWeatherParameters(ToolParameters):
    properties: Dict[str, ToolParameter] = {
        "location": ToolParameter(type="string", description="Location for weather info"),
    }
    required: Optional[List[str]] = ["location"]


# ==============================
# Tools
# ==============================


class OpenApplicationTool(OpenAITool):
    name: str = ToolName.OPEN_APPLICATION
    description: str = "Open an application or program"
    parameters: OpenApplicationParameters = OpenApplicationParameters()


class CreateFileTool(OpenAITool):
    name: str = ToolName.CREATE_FILE
    description: str = "Create a new file or folder"
    parameters: CreateFileParameters = CreateFileParameters()


class DeleteFileTool(OpenAITool):
    name: str = ToolName.DELETE_FILE
    description: str = "Delete a file or folder"
    parameters: DeleteFileParameters = DeleteFileParameters()


class GetSystemInfoTool(OpenAITool):
    name: str = ToolName.GET_SYSTEM_INFO
    description: str = "Get system information like time, date, battery, memory usage"
    parameters: GetSystemInfoParameters = GetSystemInfoParameters()


class SetReminderTool(OpenAITool):
    name: str = ToolName.SET_REMINDER
    description: str = "Set a reminder or alarm"
    parameters: SetReminderParameters = SetReminderParameters()


class ControlMediaTool(OpenAITool):
    name: str = ToolName.CONTROL_MEDIA
    description: str = "Control media playback"
    parameters: ControlMediaParameters = ControlMediaParameters()


class AdjustSettingsTool(OpenAITool):
    name: str = ToolName.ADJUST_SETTINGS
    description: str = "Adjust system settings"
    parameters: AdjustSettingsParameters = AdjustSettingsParameters()


class SearchFilesTool(OpenAITool):
    name: str = ToolName.SEARCH_FILES
    description: str = "Search for files and folders"
    parameters: SearchFilesParameters = SearchFilesParameters()


class GetWeatherTool(OpenAITool):
    name: str = ToolName.GET_WEATHER
    description: str = "Get weather information"
    parameters: GetWeatherParameters = GetWeatherParameters()


def get_audio_os_tools() -> List[Dict[str, Any]]:
    """
    Get all OpenAI tool definitions for the Audio OS assistant.

    Returns:
        List of OpenAI function tool schemas as dictionaries
    """
    tools = [
        OpenApplicationTool(),
        CreateFileTool(),
        DeleteFileTool(),
        GetSystemInfoTool(),
        SetReminderTool(),
        ControlMediaTool(),
        AdjustSettingsTool(),
        SearchFilesTool(),
        GetWeatherTool(),
    ]
    return [tool.model_dump() for tool in tools]


def register_audio_os_functions(function_handler, system: SystemFunctions) -> None:
    """
    Register all Audio OS tool implementations with the function handler.

    Args:
        function_handler: The FunctionHandler instance to register functions with
        system: The SystemFunctions instance backing the tools
    """
    function_handler.register_function(ToolName.OPEN_APPLICATION, system.open_application)
    function_handler.register_function(ToolName.CREATE_FILE, system.create_file)
    function_handler.register_function(ToolName.DELETE_FILE, system.delete_file)
    function_handler.register_function(ToolName.GET_SYSTEM_INFO, system.get_system_info)
    function_handler.register_function(ToolName.SET_REMINDER, system.set_reminder)
    function_handler.register_function(ToolName.CONTROL_MEDIA, system.control_media)
    function_handler.register_function(ToolName.ADJUST_SETTINGS, system.adjust_settings)
    function_handler.register_function(ToolName.SEARCH_FILES, system.search_files)
    function_handler.register_function(ToolName.GET_WEATHER, system.get_weather)


# ==============================
# Session Config
# ==============================


def build_session_config(config: ApplicationConfig) -> SessionConfig:
    """Build the static session configuration from deploy-time settings."""
    return SessionConfig(
        modalities=["text", "audio"],
        instructions=SESSION_PROMPT,
        voice=config.session.voice,
        input_audio_format=DEFAULT_AUDIO_ENCODING,
        output_audio_format=DEFAULT_AUDIO_ENCODING,
        input_audio_transcription={"model": config.session.transcription_model},
        turn_detection=config.vad.to_turn_detection(),
        tools=get_audio_os_tools(),
        tool_choice="auto",
        temperature=config.session.temperature,
        max_response_output_tokens=config.session.max_output_tokens,
    )


session_config = build_session_config(ApplicationConfig())
