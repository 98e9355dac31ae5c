"""Unit tests for how MCP tool results are turned into Python values.

Results are real `mcp.types.CallToolResult` objects returned by a stub
session, so parsing is exercised through `MCPClient.call_tool`.
"""

from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from mcp.types import CallToolResult, TextContent

from agentcore.tools.mcp import MCPClient, MCPConfig, MCPToolExecutionError, StreamTransportConfig


def text_result(*texts: str, is_error: bool = False) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=text) for text in texts], isError=is_error)


@pytest.fixture
def session() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
async def client(session):
    config = MCPConfig(name="orders", transport=StreamTransportConfig(url="http://localhost:8000/mcp"))
    with patch.object(MCPClient, "_connect", AsyncMock(return_value=session)):
        client = MCPClient(config)
        yield client
        await client.close()


class TestCallToolResult:
    """Tests for the shape of parsed results."""

    async def test_empty_content(self, client, session):
        session.call_tool.return_value = CallToolResult(content=[])

        assert await client.call_tool("cancel_order", {"id": "A1"}) is None

    async def test_single_item_returned_directly(self, client, session):
        session.call_tool.return_value = text_result('{"id": "A1", "status": "shipped"}')

        assert await client.call_tool("get_order", {"id": "A1"}) == {"id": "A1", "status": "shipped"}

    async def test_multiple_items_returned_as_list(self, client, session):
        session.call_tool.return_value = text_result('{"id": "A1"}', "see attachment")

        assert await client.call_tool("search_orders", {}) == [{"id": "A1"}, "see attachment"]

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ('{"key": "value"}', {"key": "value"}),  # JSON object
            ("[1, 2, 3]", [1, 2, 3]),  # JSON array
            ("123", 123),  # JSON number
            ("true", True),  # JSON boolean
            ("Order A1 shipped", "Order A1 shipped"),  # Plain text stays text
            ("{malformed", "{malformed"),  # Malformed JSON stays text
        ],
    )
    async def test_text_decoding(self, client, session, text: str, expected: Any):
        session.call_tool.return_value = text_result(text)

        assert await client.call_tool("get_order", {}) == expected


class TestErrorResults:
    """Tests for results the server flags with isError."""

    async def test_error_text_joined(self, client, session):
        session.call_tool.return_value = text_result("order not found", "id=A9", is_error=True)

        with pytest.raises(MCPToolExecutionError, match="order not found; id=A9") as exc_info:
            await client.call_tool("get_order", {"id": "A9"})

        assert exc_info.value.server == "orders"

    async def test_error_without_text(self, client, session):
        session.call_tool.return_value = CallToolResult(content=[], isError=True)

        with pytest.raises(MCPToolExecutionError, match="Tool reported an error"):
            await client.call_tool("get_order", {"id": "A9"})

    async def test_error_not_retried(self, client, session):
        session.call_tool.return_value = text_result("boom", is_error=True)

        with pytest.raises(MCPToolExecutionError):
            await client.call_tool("get_order", {})

        assert session.call_tool.await_count == 1
