"""
Pytest configuration file for the Audio OS test suite.

This file contains fixtures and socket fakes shared across test modules. The
fakes implement only the surface the relay and client use: ``send``,
``send_text``, ``iter_text`` or async iteration, and ``close``.
"""

import asyncio
import logging
import os
import random
from datetime import datetime

import pytest

from audioos.config.models import ApplicationConfig
from audioos.handlers.error_handler import UpstreamConnectionError
from audioos.handlers.providers import SystemInfoProvider
from audioos.handlers.system_functions import SystemFunctions


async def wait_until(predicate, timeout: float = 2.0) -> None:
    """Yield to the event loop until ``predicate()`` is true."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)


class FakeClientWebSocket:
    """Accepted client leg. Push ``None`` to simulate the client leaving."""

    def __init__(self):
        self.incoming: asyncio.Queue = asyncio.Queue()
        self.sent = []
        self.closed = False
        self.close_code = None

    async def iter_text(self):
        while True:
            message = await self.incoming.get()
            if message is None:
                return
            yield message

    async def send_text(self, message):
        if self.closed:
            raise RuntimeError("client socket closed")
        self.sent.append(message)

    async def send_bytes(self, message):
        await self.send_text(message)

    async def close(self, code=1000, reason=""):
        self.closed = True
        self.close_code = code
        self.incoming.put_nowait(None)


class FakeUpstreamWebSocket:
    """Upstream leg. Push ``None`` for a clean close or an exception to raise it."""

    def __init__(self):
        self.incoming: asyncio.Queue = asyncio.Queue()
        self.sent = []
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self.incoming.get()
        if item is None:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    async def send(self, message):
        self.sent.append(message)

    async def close(self, code=1000, reason=""):
        self.closed = True
        self.incoming.put_nowait(None)


class FakeConnector:
    """Stands in for UpstreamConnector; hands out one prepared upstream socket."""

    def __init__(self, upstream=None, error=None):
        self.upstream = upstream
        self.error = error
        self.connect_calls = 0

    async def connect(self):
        self.connect_calls += 1
        if self.error is not None:
            raise UpstreamConnectionError(self.error)
        return self.upstream


class FixedClock:
    def __init__(self, now=datetime(2024, 5, 1, 9, 30, 15)):
        self._now = now

    def now(self):
        return self._now


class FixedRandom(random.Random):
    """Always returns the largest value of a range and the first choice."""

    def randrange(self, start, stop=None, step=1):
        if stop is None:
            return start - 1
        return stop - 1

    def choice(self, seq):
        return seq[0]


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)
    yield


@pytest.fixture(autouse=True)
def skip_integration_when_no_api_key(request):
    if request.node.get_closest_marker("integration") and not os.environ.get("OPENAI_API_KEY"):
        pytest.skip("Skipping integration tests: OPENAI_API_KEY not set")


@pytest.fixture
def logger():
    return logging.getLogger("tests.audioos")


@pytest.fixture
def app_config():
    return ApplicationConfig()


@pytest.fixture
def fixed_random():
    return FixedRandom()


@pytest.fixture
def system_functions(fixed_random, logger):
    """SystemFunctions with a pinned clock and random source."""
    return SystemFunctions(
        info_provider=SystemInfoProvider(clock=FixedClock(), rng=fixed_random),
        rng=fixed_random,
        logger=logger,
    )


@pytest.fixture
def client_socket():
    return FakeClientWebSocket()


@pytest.fixture
def upstream_socket():
    return FakeUpstreamWebSocket()
