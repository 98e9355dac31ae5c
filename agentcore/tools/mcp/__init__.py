"""MCP (Model Context Protocol) client, tool adapters and sampling support."""

from agentcore.tools.mcp.client import MCPClient
from agentcore.tools.mcp.config import MCPConfig, PipeTransportConfig, RetryConfig, StreamTransportConfig
from agentcore.tools.mcp.exceptions import (
    MCPClientError,
    MCPConnectionError,
    MCPErrorType,
    MCPInvalidRequestError,
    MCPInvalidSchemaError,
    MCPResourceClosedError,
    MCPSamplingError,
    MCPTimeoutError,
    MCPToolExecutionError,
)
from agentcore.tools.mcp.sampling import MCPSamplingHandler, SamplingCallback, model_sampling_callback
from agentcore.tools.mcp.toolset import MCPTool, MCPToolset

__all__ = [
    "MCPClient",
    "MCPClientError",
    "MCPConfig",
    "MCPConnectionError",
    "MCPErrorType",
    "MCPInvalidRequestError",
    "MCPInvalidSchemaError",
    "MCPResourceClosedError",
    "MCPSamplingError",
    "MCPSamplingHandler",
    "MCPTimeoutError",
    "MCPTool",
    "MCPToolExecutionError",
    "MCPToolset",
    "PipeTransportConfig",
    "RetryConfig",
    "SamplingCallback",
    "StreamTransportConfig",
    "model_sampling_callback",
]
