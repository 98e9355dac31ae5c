"""Exception hierarchy for the MCP client.

Every error carries an `MCPErrorType` so callers can branch on the kind
without matching on class names.
"""

from enum import StrEnum

from agentcore.errors import AgentCoreError


class MCPErrorType(StrEnum):
    CONNECTION_ERROR = "connection_error"
    TOOL_EXECUTION_ERROR = "tool_execution_error"
    RESOURCE_CLOSED_ERROR = "resource_closed_error"
    TIMEOUT_ERROR = "timeout_error"
    INVALID_SCHEMA_ERROR = "invalid_schema_error"
    SAMPLING_ERROR = "sampling_error"
    INVALID_REQUEST_ERROR = "invalid_request_error"


class MCPClientError(AgentCoreError):
    """Base exception for all MCP client errors."""

    error_type: MCPErrorType = MCPErrorType.CONNECTION_ERROR

    def __init__(self, message: str, server: str | None = None):
        self.server = server
        server_info = f" [{server}]" if server else ""
        super().__init__(f"{message}{server_info}")


class MCPConnectionError(MCPClientError):
    """Raised when the transport cannot be opened or the handshake fails."""

    error_type = MCPErrorType.CONNECTION_ERROR

    def __init__(self, message: str, server: str | None = None):
        super().__init__(f"Connection failed: {message}", server=server)


class MCPTimeoutError(MCPClientError):
    """Raised when the handshake does not complete in time."""

    error_type = MCPErrorType.TIMEOUT_ERROR

    def __init__(self, timeout_seconds: float, server: str | None = None):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Connection timed out after {timeout_seconds}s", server=server)


class MCPResourceClosedError(MCPClientError):
    """Raised when the connection is closed, or the client is shutting down."""

    error_type = MCPErrorType.RESOURCE_CLOSED_ERROR

    def __init__(self, message: str = "Resource closed", server: str | None = None):
        super().__init__(message, server=server)


class MCPToolExecutionError(MCPClientError):
    """Raised when a remote tool call fails for a reason other than a closed connection."""

    error_type = MCPErrorType.TOOL_EXECUTION_ERROR

    def __init__(self, tool_name: str, message: str, server: str | None = None):
        self.tool_name = tool_name
        super().__init__(f"Tool '{tool_name}' failed: {message}", server=server)


class MCPInvalidSchemaError(MCPClientError):
    """Raised when a server tool has an unusable input schema."""

    error_type = MCPErrorType.INVALID_SCHEMA_ERROR

    def __init__(self, tool_name: str, message: str, server: str | None = None):
        self.tool_name = tool_name
        super().__init__(f"Invalid schema for tool '{tool_name}': {message}", server=server)


class MCPSamplingError(MCPClientError):
    """Raised when a sampling request cannot be served."""

    error_type = MCPErrorType.SAMPLING_ERROR

    def __init__(self, message: str, server: str | None = None):
        super().__init__(f"Sampling failed: {message}", server=server)


class MCPInvalidRequestError(MCPClientError):
    """Raised when an inbound request is malformed."""

    error_type = MCPErrorType.INVALID_REQUEST_ERROR

    def __init__(self, message: str, server: str | None = None):
        super().__init__(f"Invalid request: {message}", server=server)
