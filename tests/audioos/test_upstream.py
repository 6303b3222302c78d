"""Tests for the upstream realtime connector."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from websockets.exceptions import InvalidStatus

from audioos.config.models import OpenAIConfig, WebSocketConfig
from audioos.handlers.error_handler import UpstreamConnectionError
from audioos.services.upstream import UpstreamConnector


@pytest.fixture
def connector(logger):
    return UpstreamConnector(
        OpenAIConfig(api_key="sk-test"), WebSocketConfig(ping_interval=5), logger=logger
    )


@pytest.mark.asyncio
async def test_connect_sends_auth_headers(connector):
    connection = object()
    with patch("audioos.services.upstream.websockets.connect", AsyncMock(return_value=connection)) as connect:
        assert await connector.connect() is connection

    args, kwargs = connect.call_args
    assert args[0] == (
        "wss://api.openai.com/v1/realtime?model=gpt-4o-realtime-preview-2024-12-17"
    )
    assert kwargs["additional_headers"] == {
        "Authorization": "Bearer sk-test",
        "OpenAI-Beta": "realtime=v1",
    }
    assert kwargs["ping_interval"] == 5


@pytest.mark.asyncio
async def test_missing_api_key(logger):
    connector = UpstreamConnector(OpenAIConfig(), logger=logger)

    with patch("audioos.services.upstream.websockets.connect", AsyncMock()) as connect:
        with pytest.raises(UpstreamConnectionError, match="API key"):
            await connector.connect()
    connect.assert_not_called()


@pytest.mark.asyncio
async def test_rejected_handshake(connector):
    rejected = InvalidStatus(SimpleNamespace(status_code=401))
    with patch("audioos.services.upstream.websockets.connect", AsyncMock(side_effect=rejected)):
        with pytest.raises(UpstreamConnectionError, match="HTTP 401"):
            await connector.connect()


@pytest.mark.asyncio
async def test_network_failure(connector):
    with patch(
        "audioos.services.upstream.websockets.connect",
        AsyncMock(side_effect=OSError("Name or service not known")),
    ):
        with pytest.raises(UpstreamConnectionError, match="Name or service not known"):
            await connector.connect()
