"""
Collaborators consumed by the Audio OS system functions.

The system functions never read the wall clock, a random generator or a
weather service directly; they receive these providers so tests can pin
every value. The default implementations reproduce the simulated figures
the assistant reports (battery, memory, cpu, weather).
"""

import abc
import asyncio
import logging
import random
from datetime import datetime
from typing import Dict, Optional

WEATHER_CONDITIONS = ("sunny", "cloudy", "rainy", "snowy")

RandomSource = random.Random


class SystemClock:
    """Wall clock used for time and date readings."""

    def now(self) -> datetime:
        return datetime.now()


class SystemInfoProvider:
    """Produces the simulated system status snapshot."""

    def __init__(
        self,
        clock: Optional[SystemClock] = None,
        rng: Optional[RandomSource] = None,
    ):
        self.clock = clock or SystemClock()
        self.rng = rng or random.Random()

    def snapshot(self) -> Dict[str, str]:
        now = self.clock.now()
        return {
            "time": now.strftime("%H:%M:%S"),
            "date": now.strftime("%m/%d/%Y"),
            "battery": f"{self.rng.randrange(100)}%",
            "memory": f"{self.rng.randrange(32)} GB available",
            "cpu": f"{self.rng.randrange(100)}% usage",
            "network": "Connected to WiFi",
        }


class WeatherProvider(abc.ABC):
    """Source of current weather for a location.

    Implementations return a dict with ``location``, ``condition``,
    ``temperature``, ``humidity`` and ``wind``.
    """

    @abc.abstractmethod
    async def get(self, location: str) -> Dict[str, str]:
        raise NotImplementedError


class RandomWeatherProvider(WeatherProvider):
    """Synthesized weather report."""

    def __init__(self, rng: Optional[RandomSource] = None):
        self.rng = rng or random.Random()

    async def get(self, location: str) -> Dict[str, str]:
        return {
            "location": location,
            "condition": self.rng.choice(WEATHER_CONDITIONS),
            "temperature": f"{self.rng.randrange(30) + 10}°C",
            "humidity": f"{self.rng.randrange(100)}%",
            "wind": f"{self.rng.randrange(20)} km/h",
        }


class FallbackWeatherProvider(WeatherProvider):
    """Use ``primary`` and fall back to ``fallback`` when it fails or stalls."""

    def __init__(
        self,
        primary: WeatherProvider,
        fallback: Optional[WeatherProvider] = None,
        timeout: float = 2.0,
        logger: Optional[logging.Logger] = None,
    ):
        self.primary = primary
        self.fallback = fallback or RandomWeatherProvider()
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    async def get(self, location: str) -> Dict[str, str]:
        try:
            return await asyncio.wait_for(self.primary.get(location), self.timeout)
        except asyncio.TimeoutError:
            self.logger.warning(
                f"Weather lookup for {location} timed out after {self.timeout}s, using fallback"
            )
        except Exception as e:
            self.logger.warning(f"Weather lookup for {location} failed: {e}, using fallback")
        return await self.fallback.get(location)
