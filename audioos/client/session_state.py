"""
Local view state driven by Audio OS system actions.

The client applies each ``system.action`` broadcast from the relay to this
state: which application is open, volume and brightness levels, dark mode,
and a short history of recent actions for display.
"""

import logging
import re
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, Union

from audioos.config.constants import (
    ACTION_HISTORY_SIZE,
    DEFAULT_BRIGHTNESS,
    DEFAULT_VOLUME,
    SETTING_STEP,
)
from audioos.models.system_action import ActionTag, SystemAction

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"\s*([-+]?\d+)")


@dataclass
class OSApplication:
    """An application tile in the Audio OS desktop."""

    id: str
    name: str
    is_open: bool = False
    is_active: bool = False


def default_applications() -> List[OSApplication]:
    return [
        OSApplication("files", "Files"),
        OSApplication("calendar", "Calendar"),
        OSApplication("music", "Music"),
        OSApplication("messages", "Messages"),
        OSApplication("settings", "Settings"),
    ]


def _clamp(value: int) -> int:
    return max(0, min(100, value))


def _wants_increase(value: str) -> bool:
    return "up" in value or "increase" in value


def _wants_decrease(value: str) -> bool:
    return "down" in value or "decrease" in value


@dataclass
class AudioOSState:
    """Mutable UI state of one Audio OS client."""

    volume: int = DEFAULT_VOLUME
    brightness: int = DEFAULT_BRIGHTNESS
    dark_mode: bool = True
    media_state: Optional[str] = None
    applications: List[OSApplication] = field(default_factory=default_applications)
    history: Deque[SystemAction] = field(
        default_factory=lambda: deque(maxlen=ACTION_HISTORY_SIZE)
    )

    @property
    def active_application(self) -> Optional[OSApplication]:
        return next((app for app in self.applications if app.is_active), None)

    def apply_action(self, action: Union[SystemAction, Dict[str, Any]]) -> SystemAction:
        """Record an action in the history and update the matching state.

        Failed actions are recorded but change nothing else.
        """
        if isinstance(action, dict):
            action = SystemAction(**action)
        self.history.appendleft(action)

        if not action.success or not isinstance(action.data, dict):
            return action

        data = action.data
        if action.action == ActionTag.OPEN_APP and data.get("app"):
            self.open_application(str(data["app"]))
        elif action.action == ActionTag.ADJUST_SETTINGS:
            self.adjust_setting(str(data.get("setting", "")), str(data.get("value", "")))
        elif action.action == ActionTag.CONTROL_MEDIA:
            self._control_media(str(data.get("action", "")))
        return action

    def open_application(self, app_name: str) -> bool:
        """Mark matching applications open and active, all others inactive."""
        needle = app_name.lower()
        matched = False
        for app in self.applications:
            if needle in app.name.lower() or needle in app.id.lower():
                app.is_open = True
                app.is_active = True
                matched = True
            else:
                app.is_active = False
        if not matched:
            logger.debug(f"No application matches '{app_name}'")
        return matched

    def adjust_setting(self, setting: str, value: str) -> None:
        value = value.lower()
        if setting == "volume":
            if _wants_increase(value):
                self.volume = _clamp(self.volume + SETTING_STEP)
            elif _wants_decrease(value):
                self.volume = _clamp(self.volume - SETTING_STEP)
            else:
                match = _LEADING_INT.match(value)
                if match:
                    self.volume = _clamp(int(match.group(1)))
        elif setting == "brightness":
            if _wants_increase(value):
                self.brightness = _clamp(self.brightness + SETTING_STEP)
            elif _wants_decrease(value):
                self.brightness = _clamp(self.brightness - SETTING_STEP)
        elif setting == "dark_mode":
            self.dark_mode = "on" in value or "enable" in value

    def _control_media(self, media_action: str) -> None:
        if media_action == "volume_up":
            self.volume = _clamp(self.volume + SETTING_STEP)
        elif media_action == "volume_down":
            self.volume = _clamp(self.volume - SETTING_STEP)
        elif media_action:
            self.media_state = media_action

    def recent_actions(self) -> List[SystemAction]:
        """History of received actions, newest first."""
        return list(self.history)
