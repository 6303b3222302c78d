"""Tests for the simulated Audio OS system functions and their providers."""

import asyncio

import pytest

from audioos.handlers.error_handler import FunctionDispatchError
from audioos.handlers.providers import (
    FallbackWeatherProvider,
    RandomWeatherProvider,
    SystemInfoProvider,
    WeatherProvider,
)
from audioos.handlers.system_functions import SystemFunctions
from audioos.models.system_action import ActionTag

from conftest import FixedClock, FixedRandom


class FailingWeatherProvider(WeatherProvider):
    async def get(self, location):
        raise ConnectionError("weather service down")


class SlowWeatherProvider(WeatherProvider):
    async def get(self, location):
        await asyncio.sleep(1)
        return {"location": location, "condition": "foggy"}


class TestFileFunctions:
    def test_open_application(self, system_functions):
        result = system_functions.open_application({"app_name": "Music", "parameters": "shuffle"})

        assert result.success is True
        assert result.message == "Opening Music"
        assert result.action == ActionTag.OPEN_APP
        assert result.data == {"app": "Music", "params": "shuffle"}

    def test_create_file(self, system_functions):
        result = system_functions.create_file({"name": "notes.txt", "type": "file"})

        assert result.message == 'Created file "notes.txt" successfully'
        assert result.action == ActionTag.CREATE_FILE
        assert result.data == {
            "name": "notes.txt",
            "type": "file",
            "content": None,
            "location": None,
        }

    def test_create_file_rejects_unknown_type(self, system_functions):
        with pytest.raises(FunctionDispatchError, match="Invalid type 'symlink'"):
            system_functions.create_file({"name": "x", "type": "symlink"})

    def test_delete_file(self, system_functions):
        result = system_functions.delete_file({"path": "/tmp/old.txt", "confirm": True})

        assert result.message == 'Deleted "/tmp/old.txt" successfully'
        assert result.data == {"path": "/tmp/old.txt"}

    def test_missing_required_argument(self, system_functions):
        with pytest.raises(FunctionDispatchError, match="app_name"):
            system_functions.open_application({})

    def test_search_files_uses_random_count(self, system_functions):
        result = system_functions.search_files({"query": "report"})

        assert result.message == 'Found files matching "report"'
        assert result.data["results"] == [
            "document_report.txt",
            "project_report.pdf",
            "image_report.jpg",
        ]

    def test_search_files_returns_at_least_one(self, logger):
        class LowRandom(FixedRandom):
            def randrange(self, start, stop=None, step=1):
                return 0

        functions = SystemFunctions(rng=LowRandom(), logger=logger)
        result = functions.search_files({"query": "x"})
        assert result.data["results"] == ["document_x.txt"]


class TestSystemInfo:
    def test_single_info_type(self, system_functions):
        result = system_functions.get_system_info({"info_type": "battery"})

        assert result.message == "Here's your battery information"
        assert result.action == ActionTag.SYSTEM_INFO
        assert result.data == {"battery": "99%"}

    def test_all_info(self, system_functions):
        result = system_functions.get_system_info({"info_type": "all"})

        assert result.data == {
            "time": "09:30:15",
            "date": "05/01/2024",
            "battery": "99%",
            "memory": "31 GB available",
            "cpu": "99% usage",
            "network": "Connected to WiFi",
        }

    def test_unknown_info_type(self, system_functions):
        with pytest.raises(FunctionDispatchError):
            system_functions.get_system_info({"info_type": "gpu"})

    def test_snapshot_ranges(self):
        snapshot = SystemInfoProvider(clock=FixedClock()).snapshot()

        assert 0 <= int(snapshot["battery"].rstrip("%")) <= 99
        assert 0 <= int(snapshot["memory"].split()[0]) <= 31
        assert snapshot["network"] == "Connected to WiFi"


class TestReminderMediaSettings:
    def test_set_reminder(self, system_functions):
        result = system_functions.set_reminder(
            {"title": "Stand-up", "time": "in 10 minutes", "description": "daily"}
        )

        assert result.message == 'Reminder "Stand-up" set for in 10 minutes'
        assert result.data == {
            "title": "Stand-up",
            "time": "in 10 minutes",
            "description": "daily",
        }

    def test_control_media(self, system_functions):
        result = system_functions.control_media({"action": "pause"})

        assert result.message == "Media pause executed"
        assert result.data == {"action": "pause", "media": None}

    def test_control_media_rejects_unknown_action(self, system_functions):
        with pytest.raises(FunctionDispatchError):
            system_functions.control_media({"action": "rewind"})

    def test_adjust_settings(self, system_functions):
        result = system_functions.adjust_settings({"setting": "volume", "value": "increase"})

        assert result.message == "volume adjusted to increase"
        assert result.action == ActionTag.ADJUST_SETTINGS
        assert result.data == {"setting": "volume", "value": "increase"}


class TestWeather:
    @pytest.mark.asyncio
    async def test_get_weather(self, system_functions):
        result = await system_functions.get_weather({"location": "Paris"})

        assert result.message == "Here's the weather for Paris"
        assert result.action == ActionTag.GET_WEATHER
        assert result.data == {
            "location": "Paris",
            "condition": "sunny",
            "temperature": "39°C",
            "humidity": "99%",
            "wind": "19 km/h",
        }

    @pytest.mark.asyncio
    async def test_random_weather_ranges(self):
        weather = await RandomWeatherProvider().get("Oslo")

        assert weather["condition"] in ("sunny", "cloudy", "rainy", "snowy")
        assert 10 <= int(weather["temperature"].rstrip("°C")) <= 39
        assert weather["wind"].endswith(" km/h")

    @pytest.mark.asyncio
    async def test_fallback_on_failure(self, logger):
        provider = FallbackWeatherProvider(
            FailingWeatherProvider(), RandomWeatherProvider(FixedRandom()), logger=logger
        )

        weather = await provider.get("Lima")
        assert weather["location"] == "Lima"
        assert weather["condition"] == "sunny"

    @pytest.mark.asyncio
    async def test_fallback_on_timeout(self, logger):
        provider = FallbackWeatherProvider(
            SlowWeatherProvider(),
            RandomWeatherProvider(FixedRandom()),
            timeout=0.01,
            logger=logger,
        )

        weather = await provider.get("Quito")
        assert weather["condition"] == "sunny"
