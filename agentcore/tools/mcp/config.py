"""Configuration for MCP (Model Context Protocol) clients."""

from dataclasses import dataclass, field
from typing import Literal


@dataclass(frozen=True)
class PipeTransportConfig:
    """Local subprocess speaking MCP over stdio.

    Attributes:
        command: Executable to launch
        args: Command-line arguments
        env: Extra environment variables for the subprocess
        cwd: Working directory for the subprocess
    """

    command: str
    args: tuple[str, ...] = ()
    env: dict[str, str] | None = None
    cwd: str | None = None
    mode: Literal["pipe"] = field(default="pipe", init=False)


@dataclass(frozen=True)
class StreamTransportConfig:
    """Remote MCP server over streamable HTTP.

    Attributes:
        url: URL of the MCP server endpoint
        headers: Optional HTTP headers to include in requests
        connect_timeout: HTTP connect/write timeout in seconds
        sse_read_timeout: SSE stream read timeout in seconds
    """

    url: str
    headers: dict[str, str] | None = None
    connect_timeout: float = 60.0
    sse_read_timeout: float = 300.0
    mode: Literal["stream"] = field(default="stream", init=False)


type TransportConfig = PipeTransportConfig | StreamTransportConfig


@dataclass(frozen=True)
class RetryConfig:
    """Reinitialize-and-retry policy for calls that hit a closed connection.

    Attributes:
        max_retries: Retries after the first attempt
        initial_delay: First backoff delay in seconds
        max_delay: Upper bound for backoff delays in seconds
    """

    max_retries: int = 2
    initial_delay: float = 0.5
    max_delay: float = 5.0


@dataclass(frozen=True)
class MCPConfig:
    """Configuration for one MCP server connection.

    Attributes:
        name: Server name used in logs and tool-collision messages
        transport: Pipe or stream transport settings
        timeout: Handshake timeout in seconds, None to wait indefinitely
        read_timeout: Per-request read timeout in seconds
        retry: Policy for recovering from a closed connection
        tool_prefix: Optional prefix for tool names to avoid collisions with multiple MCP servers.
                     All MCP tools get 'mcp_' prefix; this adds: mcp_<tool_prefix>_<name>
    """

    name: str
    transport: TransportConfig
    timeout: float | None = 30.0
    read_timeout: float = 120.0
    retry: RetryConfig = RetryConfig()
    tool_prefix: str | None = None
