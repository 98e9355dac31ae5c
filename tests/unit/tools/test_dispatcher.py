"""Unit tests for the tool dispatcher."""

from unittest.mock import Mock

import pytest
from tenacity import wait_none

from agentcore.errors import ToolExecutionError
from agentcore.tools import FunctionTool, ToolDispatcher
from agentcore.tools.dispatcher import error_result, is_error_result, normalize_result


@pytest.fixture
def dispatcher() -> ToolDispatcher:
    return ToolDispatcher(retry_wait=wait_none())


@pytest.fixture
def tool_context():
    context = Mock()
    context.agent_name = "assistant"
    context.function_call_id = "call-1"
    return context


def flaky(failures: int):
    """Build a function that raises `failures` times before succeeding."""
    calls = []

    async def lookup(order_id: str) -> dict:
        calls.append(order_id)
        if len(calls) <= failures:
            raise ConnectionError("upstream unavailable")
        return {"order_id": order_id, "status": "shipped"}

    return lookup, calls


class TestResultHelpers:
    """Tests for result normalization helpers."""

    def test_normalize_wraps_non_dict(self):
        assert normalize_result("ok") == {"result": "ok"}
        assert normalize_result(None) == {"result": None}
        assert normalize_result({"a": 1}) == {"a": 1}

    def test_error_result_shape(self):
        result = error_result("bad", "VALIDATION_ERROR")
        assert result == {"error": "bad", "error_code": "VALIDATION_ERROR"}
        assert is_error_result(result)
        assert not is_error_result({"error": "only"})
        assert not is_error_result(None)


class TestDispatch:
    """Tests for ToolDispatcher.dispatch."""

    async def test_success(self, dispatcher, tool_context):
        lookup, _ = flaky(0)

        result = await dispatcher.dispatch(FunctionTool(lookup), {"order_id": "A1"}, tool_context)

        assert result == {"order_id": "A1", "status": "shipped"}

    async def test_scalar_result_wrapped(self, dispatcher, tool_context):
        def count() -> int:
            return 3

        assert await dispatcher.dispatch(FunctionTool(count), {}, tool_context) == {"result": 3}

    async def test_validation_error_not_invoked(self, dispatcher, tool_context):
        """Invalid arguments are reported without running the tool."""
        lookup, calls = flaky(0)

        result = await dispatcher.dispatch(FunctionTool(lookup), {"order_id": 5, "extra": True}, tool_context)

        assert result["error_code"] == "VALIDATION_ERROR"
        assert "order_id" in result["error"]
        assert calls == []

    async def test_exception_becomes_execution_error(self, dispatcher, tool_context):
        lookup, _ = flaky(1)

        result = await dispatcher.dispatch(FunctionTool(lookup), {"order_id": "A1"}, tool_context)

        assert result["error_code"] == "TOOL_EXECUTION_ERROR"
        assert result["error"] == "Error executing lookup: upstream unavailable"

    async def test_tool_execution_error_message_kept(self, dispatcher, tool_context):
        def refuse() -> None:
            raise ToolExecutionError("refuse", "not allowed")

        result = await dispatcher.dispatch(FunctionTool(refuse), {}, tool_context)

        assert result == {"error": "Error executing refuse: not allowed", "error_code": "TOOL_EXECUTION_ERROR"}

    async def test_retries_until_success(self, dispatcher, tool_context):
        """A retrying tool is attempted again after failures."""
        lookup, calls = flaky(2)
        tool = FunctionTool(lookup, should_retry_on_failure=True, max_retry_attempts=3)

        result = await dispatcher.dispatch(tool, {"order_id": "A1"}, tool_context)

        assert result["status"] == "shipped"
        assert len(calls) == 3

    async def test_retries_exhausted(self, dispatcher, tool_context):
        """After the last attempt fails the error is reported."""
        lookup, calls = flaky(5)
        tool = FunctionTool(lookup, should_retry_on_failure=True, max_retry_attempts=2)

        result = await dispatcher.dispatch(tool, {"order_id": "A1"}, tool_context)

        assert result["error_code"] == "TOOL_EXECUTION_ERROR"
        assert len(calls) == 2

    async def test_no_retry_by_default(self, dispatcher, tool_context):
        lookup, calls = flaky(1)

        await dispatcher.dispatch(FunctionTool(lookup), {"order_id": "A1"}, tool_context)

        assert len(calls) == 1

    async def test_long_running_none_passes_through(self, dispatcher, tool_context):
        """A long-running tool without an inline result yields None."""

        def start_job() -> None:
            return None

        tool = FunctionTool(start_job, is_long_running=True)

        assert await dispatcher.dispatch(tool, {}, tool_context) is None
