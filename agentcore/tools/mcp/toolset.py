"""Adapters exposing MCP server tools as agent tools."""

import asyncio
from collections.abc import Sequence
from typing import Any

from mcp.types import Tool as MCPToolSpec

from agentcore.platform.observability import get_logger
from agentcore.tools.base import DEFAULT_MAX_RETRY_ATTEMPTS, BaseTool
from agentcore.tools.context import ToolContext
from agentcore.tools.declaration import FunctionDeclaration
from agentcore.tools.mcp.client import MCPClient
from agentcore.tools.mcp.config import MCPConfig
from agentcore.tools.mcp.exceptions import MCPInvalidSchemaError
from agentcore.tools.mcp.sampling import MCPSamplingHandler

logger = get_logger(__name__)

DEFAULT_DESCRIPTION = "MCP Tool"


def normalize_input_schema(spec: MCPToolSpec) -> dict[str, Any]:
    """Return the tool's input schema as an object schema.

    Raises:
        MCPInvalidSchemaError: If the schema is not an object schema
    """
    schema = spec.inputSchema
    if not isinstance(schema, dict):
        raise MCPInvalidSchemaError(spec.name, f"expected an object, got {type(schema).__name__}")
    schema = dict(schema)
    schema.setdefault("type", "object")
    if schema["type"] != "object":
        raise MCPInvalidSchemaError(spec.name, f"expected type 'object', got {schema['type']!r}")
    properties = schema.setdefault("properties", {})
    if not isinstance(properties, dict):
        raise MCPInvalidSchemaError(spec.name, "'properties' must be an object")
    return schema


def max_retry_attempts(tool_name: str, meta: dict[str, Any]) -> int:
    """Read `maxRetryAttempts` from tool metadata.

    Raises:
        MCPInvalidSchemaError: If the value is not a positive integer
    """
    value = meta.get("maxRetryAttempts", DEFAULT_MAX_RETRY_ATTEMPTS)
    try:
        attempts = int(value)
    except (TypeError, ValueError):
        raise MCPInvalidSchemaError(tool_name, f"_meta.maxRetryAttempts must be an integer, got {value!r}") from None
    if attempts < 1:
        raise MCPInvalidSchemaError(tool_name, f"_meta.maxRetryAttempts must be at least 1, got {attempts}")
    return attempts


class MCPTool(BaseTool):
    """A tool that forwards calls to an MCP server.

    The server can steer execution through the tool's `_meta` field:
    `isLongRunning`, `shouldRetryOnFailure` and `maxRetryAttempts`.
    """

    def __init__(self, spec: MCPToolSpec, client: MCPClient, tool_prefix: str | None = None) -> None:
        """Initialize from a server tool definition.

        Args:
            spec: Tool definition returned by the server
            client: Client used to invoke the tool
            tool_prefix: Optional prefix added after 'mcp_' for collision avoidance.
                         Final format: mcp_<prefix>_<name>
        """
        meta = getattr(spec, "meta", None) or {}
        super().__init__(
            prefixed_name(spec.name, tool_prefix),
            spec.description or DEFAULT_DESCRIPTION,
            is_long_running=bool(meta.get("isLongRunning", False)),
            should_retry_on_failure=bool(meta.get("shouldRetryOnFailure", False)),
            max_retry_attempts=max_retry_attempts(spec.name, meta),
        )
        self.original_name = spec.name
        self._client = client
        self._parameters = normalize_input_schema(spec)

    @property
    def proxy_name(self) -> str:
        return self.original_name

    def get_declaration(self) -> FunctionDeclaration:
        return FunctionDeclaration(name=self.name, description=self.description, parameters=self._parameters)

    async def run(self, args: dict[str, Any], tool_context: ToolContext) -> Any:
        # Always call MCP with the original tool name
        return await self._client.call_tool(self.original_name, args)


def prefixed_name(name: str, tool_prefix: str | None) -> str:
    """Apply mcp_ prefix and optional tool prefix to a tool name.

    Returns:
        Prefixed name: mcp_<name> or mcp_<tool_prefix>_<name>
    """
    if tool_prefix:
        return f"mcp_{tool_prefix}_{name}"
    return f"mcp_{name}"


class MCPToolset:
    """All tools of one MCP server, sharing one client."""

    def __init__(self, client: MCPClient, tool_prefix: str | None = None) -> None:
        self.client = client
        self.tool_prefix = tool_prefix

    @classmethod
    def from_config(
        cls, config: MCPConfig, sampling_handler: MCPSamplingHandler | None = None
    ) -> "MCPToolset":
        return cls(MCPClient(config, sampling_handler=sampling_handler), config.tool_prefix)

    async def __aenter__(self) -> "MCPToolset":
        await self.client.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def get_tools(self) -> list[MCPTool]:
        """List the server's tools as agent tools, skipping tools with an unusable schema or metadata."""
        tools: list[MCPTool] = []
        for spec in await self.client.list_tools():
            try:
                tools.append(MCPTool(spec, self.client, self.tool_prefix))
            except MCPInvalidSchemaError as e:
                logger.warning("mcp_tool_skipped", server=self.client.name, error=str(e))
        return tools

    async def close(self) -> None:
        await self.client.close()

    @classmethod
    async def fetch_all(cls, toolsets: Sequence["MCPToolset"]) -> list[BaseTool]:
        """Fetch tools from several MCP servers.

        Connections are opened one by one, so an unreachable server raises
        directly; listing runs concurrently.

        Raises:
            MCPClientError: If a server cannot be reached
            ExceptionGroup: If listing fails on any server
            ValueError: If a tool name collision is detected across servers
        """
        for toolset in toolsets:
            await toolset.client.initialize()

        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(toolset.get_tools()) for toolset in toolsets]

        tools: list[BaseTool] = []
        seen: dict[str, str] = {}  # tool_name -> server name
        for toolset, task in zip(toolsets, tasks):
            for tool in task.result():
                if tool.name in seen:
                    raise ValueError(
                        f"Tool name collision: '{tool.name}' from {toolset.client.name} "
                        f"conflicts with {seen[tool.name]}. "
                        f"Set tool_prefix on one or both MCPConfigs."
                    )
                seen[tool.name] = toolset.client.name
                tools.append(tool)
        return tools
