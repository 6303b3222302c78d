"""
Simulated system actions behind the Audio OS tools.

Each function takes the decoded tool arguments and returns a FunctionResult
whose ``action`` tag tells the client which piece of UI state to update.
Nothing here touches the real file system or devices; the results are
confirmations the assistant narrates back to the user.

Invalid arguments raise FunctionDispatchError, which the FunctionHandler
converts into a failed result for the model.
"""

import logging
import random
from typing import Any, Dict, Iterable, Optional

from audioos.handlers.error_handler import FunctionDispatchError
from audioos.handlers.providers import (
    RandomSource,
    RandomWeatherProvider,
    SystemInfoProvider,
    WeatherProvider,
)
from audioos.models.system_action import ActionTag, FunctionResult

module_logger = logging.getLogger(__name__)

FILE_TYPES = ("file", "folder")
INFO_TYPES = ("time", "date", "battery", "memory", "cpu", "network", "all")
MEDIA_ACTIONS = ("play", "pause", "stop", "next", "previous", "volume_up", "volume_down")
SETTINGS = ("volume", "brightness", "wifi", "bluetooth", "dark_mode")
SEARCH_RESULT_TEMPLATES = (
    "document_{query}.txt",
    "project_{query}.pdf",
    "image_{query}.jpg",
    "code_{query}.js",
)


def _require(arguments: Dict[str, Any], *names: str) -> None:
    missing = [name for name in names if arguments.get(name) in (None, "")]
    if missing:
        raise FunctionDispatchError(f"Missing required argument(s): {', '.join(missing)}")


def _require_choice(arguments: Dict[str, Any], name: str, choices: Iterable[str]) -> str:
    value = arguments[name]
    if value not in choices:
        raise FunctionDispatchError(
            f"Invalid {name} '{value}'. Expected one of: {', '.join(choices)}"
        )
    return value


class SystemFunctions:
    """Implementations of the nine Audio OS tools.

    Args:
        info_provider: Source of time, date and simulated resource figures
        weather_provider: Source of weather reports
        rng: Random source used for simulated search results
        logger: Logger for executed actions
    """

    def __init__(
        self,
        info_provider: Optional[SystemInfoProvider] = None,
        weather_provider: Optional[WeatherProvider] = None,
        rng: Optional[RandomSource] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.rng = rng or random.Random()
        self.info_provider = info_provider or SystemInfoProvider(rng=self.rng)
        self.weather_provider = weather_provider or RandomWeatherProvider(self.rng)
        self.logger = logger or module_logger

    def open_application(self, arguments: Dict[str, Any]) -> FunctionResult:
        _require(arguments, "app_name")
        app_name = arguments["app_name"]
        self.logger.info(f"Opening application: {app_name}")
        return FunctionResult(
            success=True,
            message=f"Opening {app_name}",
            action=ActionTag.OPEN_APP,
            data={"app": app_name, "params": arguments.get("parameters")},
        )

    def create_file(self, arguments: Dict[str, Any]) -> FunctionResult:
        _require(arguments, "name", "type")
        file_type = _require_choice(arguments, "type", FILE_TYPES)
        name = arguments["name"]
        return FunctionResult(
            success=True,
            message=f'Created {file_type} "{name}" successfully',
            action=ActionTag.CREATE_FILE,
            data={
                "name": name,
                "type": file_type,
                "content": arguments.get("content"),
                "location": arguments.get("location"),
            },
        )

    def delete_file(self, arguments: Dict[str, Any]) -> FunctionResult:
        _require(arguments, "path")
        path = arguments["path"]
        return FunctionResult(
            success=True,
            message=f'Deleted "{path}" successfully',
            action=ActionTag.DELETE_FILE,
            data={"path": path},
        )

    def get_system_info(self, arguments: Dict[str, Any]) -> FunctionResult:
        _require(arguments, "info_type")
        info_type = _require_choice(arguments, "info_type", INFO_TYPES)
        info = self.info_provider.snapshot()
        data = info if info_type == "all" else {info_type: info[info_type]}
        return FunctionResult(
            success=True,
            message=f"Here's your {info_type} information",
            action=ActionTag.SYSTEM_INFO,
            data=data,
        )

    def set_reminder(self, arguments: Dict[str, Any]) -> FunctionResult:
        _require(arguments, "title", "time")
        title, when = arguments["title"], arguments["time"]
        return FunctionResult(
            success=True,
            message=f'Reminder "{title}" set for {when}',
            action=ActionTag.SET_REMINDER,
            data={
                "title": title,
                "time": when,
                "description": arguments.get("description"),
            },
        )

    def control_media(self, arguments: Dict[str, Any]) -> FunctionResult:
        _require(arguments, "action")
        media_action = _require_choice(arguments, "action", MEDIA_ACTIONS)
        return FunctionResult(
            success=True,
            message=f"Media {media_action} executed",
            action=ActionTag.CONTROL_MEDIA,
            data={"action": media_action, "media": arguments.get("media")},
        )

    def adjust_settings(self, arguments: Dict[str, Any]) -> FunctionResult:
        _require(arguments, "setting", "value")
        setting = _require_choice(arguments, "setting", SETTINGS)
        value = arguments["value"]
        return FunctionResult(
            success=True,
            message=f"{setting} adjusted to {value}",
            action=ActionTag.ADJUST_SETTINGS,
            data={"setting": setting, "value": value},
        )

    def search_files(self, arguments: Dict[str, Any]) -> FunctionResult:
        _require(arguments, "query")
        query = arguments["query"]
        count = self.rng.randrange(3) + 1
        results = [
            template.format(query=query) for template in SEARCH_RESULT_TEMPLATES[:count]
        ]
        return FunctionResult(
            success=True,
            message=f'Found files matching "{query}"',
            action=ActionTag.SEARCH_FILES,
            data={"query": query, "results": results},
        )

    async def get_weather(self, arguments: Dict[str, Any]) -> FunctionResult:
        _require(arguments, "location")
        location = arguments["location"]
        weather = await self.weather_provider.get(location)
        return FunctionResult(
            success=True,
            message=f"Here's the weather for {location}",
            action=ActionTag.GET_WEATHER,
            data={"location": location, **weather},
        )
