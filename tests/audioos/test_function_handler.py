"""Tests for FunctionHandler dispatch and result delivery."""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from audioos.agents.audio_os_agent import register_audio_os_functions
from audioos.handlers.function_handler import FunctionHandler
from audioos.models.openai_api import FunctionCallArgumentsDoneEvent
from audioos.models.system_action import ActionTag, FunctionResult, SystemAction, ToolName


@pytest.fixture
def mock_websocket():
    websocket = AsyncMock()
    websocket.send = AsyncMock()
    return websocket


@pytest.fixture
def function_handler(mock_websocket, system_functions, logger):
    handler = FunctionHandler(mock_websocket, logger=logger)
    register_audio_os_functions(handler, system_functions)
    return handler


def sent_events(websocket):
    return [json.loads(call.args[0]) for call in websocket.send.call_args_list]


def done_event(call_id="call_1", name="open_application", arguments='{"app_name": "Music"}'):
    return {
        "type": "response.function_call_arguments.done",
        "response_id": "resp_1",
        "item_id": "item_1",
        "call_id": call_id,
        "name": name,
        "arguments": arguments,
    }


class TestRegistry:
    def test_all_tools_registered(self, function_handler):
        assert sorted(function_handler.get_registered_functions()) == sorted(ToolName.ALL)

    def test_unregister(self, function_handler):
        assert function_handler.unregister_function(ToolName.GET_WEATHER) is True
        assert function_handler.unregister_function(ToolName.GET_WEATHER) is False
        assert ToolName.GET_WEATHER not in function_handler.get_registered_functions()


class TestDispatch:
    @pytest.mark.asyncio
    async def test_unknown_function(self, function_handler):
        result = await function_handler.dispatch("send_message", {"to": "Bob"})

        assert result.success is False
        assert result.message == "Unknown function: send_message"
        assert result.action == ActionTag.ERROR
        assert result.data is None

    @pytest.mark.asyncio
    async def test_handler_exception_becomes_failure(self, function_handler):
        def broken(arguments):
            raise ValueError("boom")

        function_handler.register_function("broken", broken)
        result = await function_handler.dispatch("broken", {})

        assert result.success is False
        assert result.message == "Error executing broken: boom"
        assert result.action == ActionTag.ERROR

    @pytest.mark.asyncio
    async def test_invalid_arguments_become_failure(self, function_handler):
        result = await function_handler.dispatch(ToolName.CREATE_FILE, {"name": "x"})

        assert result.success is False
        assert result.message.startswith("Error executing create_file: Missing required argument")

    @pytest.mark.asyncio
    async def test_async_handler_timeout(self, mock_websocket, logger):
        handler = FunctionHandler(mock_websocket, logger=logger, function_timeout=0.01)

        async def slow(arguments):
            await asyncio.sleep(1)

        handler.register_function("slow", slow)
        result = await handler.dispatch("slow", {})

        assert result.success is False
        assert result.message == "Error executing slow: timed out after 0.01 seconds"

    @pytest.mark.asyncio
    async def test_dict_results_are_accepted(self, function_handler):
        function_handler.register_function(
            "plain", lambda arguments: {"success": True, "message": "ok", "action": "noop"}
        )
        result = await function_handler.dispatch("plain", {})

        assert isinstance(result, FunctionResult)
        assert result.message == "ok"

    @pytest.mark.asyncio
    async def test_async_tool(self, function_handler):
        result = await function_handler.dispatch(ToolName.GET_WEATHER, {"location": "Rome"})
        assert result.success is True
        assert result.data["location"] == "Rome"


class TestFunctionCallArgumentsDone:
    @pytest.mark.asyncio
    async def test_sends_output_then_response_create(self, function_handler, mock_websocket):
        action = await function_handler.handle_function_call_arguments_done(done_event())

        events = sent_events(mock_websocket)
        assert [event["type"] for event in events] == [
            "conversation.item.create",
            "response.create",
        ]
        item = events[0]["item"]
        assert item["type"] == "function_call_output"
        assert item["call_id"] == "call_1"
        assert json.loads(item["output"]) == {
            "success": True,
            "message": "Opening Music",
            "action": "open_app",
            "data": {"app": "Music", "params": None},
        }
        assert events[1] == {"type": "response.create"}

        assert isinstance(action, SystemAction)
        assert action.call_id == "call_1"
        assert action.message == "Opening Music"

    @pytest.mark.asyncio
    async def test_accepts_parsed_event(self, function_handler, mock_websocket):
        event = FunctionCallArgumentsDoneEvent(**done_event(call_id="call_typed"))
        action = await function_handler.handle_function_call_arguments_done(event)

        assert action.call_id == "call_typed"
        assert sent_events(mock_websocket)[0]["item"]["call_id"] == "call_typed"

    @pytest.mark.asyncio
    async def test_unknown_tool_still_answers_upstream(self, function_handler, mock_websocket):
        action = await function_handler.handle_function_call_arguments_done(
            done_event(name="set_timer", arguments='{"minutes": 5}')
        )

        output = json.loads(sent_events(mock_websocket)[0]["item"]["output"])
        assert output["success"] is False
        assert output["message"] == "Unknown function: set_timer"
        assert action.success is False

    @pytest.mark.asyncio
    async def test_unknown_tool_with_non_object_arguments(self, function_handler, mock_websocket):
        action = await function_handler.handle_function_call_arguments_done(
            done_event(name="bogus_tool", arguments="[]")
        )

        assert action.success is False
        assert action.message == "Unknown function: bogus_tool"
        output = json.loads(sent_events(mock_websocket)[0]["item"]["output"])
        assert output["message"] == "Unknown function: bogus_tool"

    @pytest.mark.asyncio
    async def test_malformed_arguments(self, function_handler, mock_websocket):
        action = await function_handler.handle_function_call_arguments_done(
            done_event(arguments="{not json")
        )

        assert action.success is False
        assert action.message == "Error executing open_application: arguments must be a JSON object"
        assert len(sent_events(mock_websocket)) == 2

    @pytest.mark.asyncio
    async def test_non_object_arguments(self, function_handler):
        action = await function_handler.handle_function_call_arguments_done(
            done_event(arguments="[1, 2]")
        )
        assert action.success is False

    @pytest.mark.asyncio
    async def test_duplicate_call_id_is_ignored(self, function_handler, mock_websocket):
        first = await function_handler.handle_function_call_arguments_done(done_event())
        second = await function_handler.handle_function_call_arguments_done(done_event())

        assert first is not None
        assert second is None
        assert len(sent_events(mock_websocket)) == 2

    @pytest.mark.asyncio
    async def test_call_history_is_bounded(self, mock_websocket, system_functions, logger):
        handler = FunctionHandler(mock_websocket, logger=logger, call_history_size=2)
        register_audio_os_functions(handler, system_functions)

        for call_id in ("a", "b", "c"):
            await handler.handle_function_call_arguments_done(done_event(call_id=call_id))

        # "a" has been forgotten, "c" is still remembered
        assert await handler.handle_function_call_arguments_done(done_event(call_id="a")) is not None
        assert await handler.handle_function_call_arguments_done(done_event(call_id="c")) is None

    @pytest.mark.asyncio
    async def test_missing_call_id(self, function_handler, mock_websocket):
        action = await function_handler.handle_function_call_arguments_done(done_event(call_id=""))

        assert action is None
        mock_websocket.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_upstream(self, system_functions, logger):
        handler = FunctionHandler(logger=logger)
        register_audio_os_functions(handler, system_functions)

        with pytest.raises(RuntimeError):
            await handler.handle_function_call_arguments_done(done_event())
