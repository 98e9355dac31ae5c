"""Exception hierarchy for the agent execution core.

Tool-level failures are normally recovered by the dispatcher and surfaced to
the model as structured error results. The remaining errors are fatal for the
current run and propagate to the caller.
"""

from enum import StrEnum


class ErrorCode(StrEnum):
    """Machine-readable kinds carried by error-coded events and tool results."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    TOOL_EXECUTION_ERROR = "TOOL_EXECUTION_ERROR"
    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
    MODEL_ERROR = "MODEL_ERROR"
    OUTPUT_SCHEMA_VALIDATION_FAILED = "OUTPUT_SCHEMA_VALIDATION_FAILED"


class AgentCoreError(Exception):
    """Base exception for all agentcore errors."""


class ToolValidationError(AgentCoreError):
    """Raised when tool arguments do not match the tool's declaration."""

    def __init__(self, tool_name: str, details: list[str]):
        self.tool_name = tool_name
        self.details = details
        super().__init__(f"Invalid arguments for {tool_name}: {', '.join(details)}")


class ToolExecutionError(AgentCoreError):
    """Raised when a tool body fails."""

    def __init__(self, tool_name: str, message: str):
        self.tool_name = tool_name
        super().__init__(f"Error executing {tool_name}: {message}")


class TransferTargetNotFoundError(AgentCoreError):
    """Raised when a transfer names an agent that is not in the agent tree."""

    def __init__(self, agent_name: str):
        self.agent_name = agent_name
        super().__init__(f"Agent {agent_name} not found in the agent tree.")


class FlowInvariantError(AgentCoreError):
    """Raised when a turn ends with a partial event and no concluding chunk."""

    def __init__(self, agent_name: str, event_id: str | None = None):
        self.agent_name = agent_name
        self.event_id = event_id
        event_info = f" (event: {event_id})" if event_id else ""
        super().__init__(f"Last event of a step for agent {agent_name} is partial{event_info}")


class LlmCallLimitExceededError(AgentCoreError):
    """Raised when a run makes more model calls than its configuration allows."""

    def __init__(self, max_llm_calls: int):
        self.max_llm_calls = max_llm_calls
        super().__init__(f"Max number of llm calls limit of {max_llm_calls} exceeded")


class SessionNotFoundError(AgentCoreError):
    """Raised when a run targets a session the session service does not know."""

    def __init__(self, session_id: str, app_name: str | None = None, user_id: str | None = None):
        self.session_id = session_id
        self.app_name = app_name
        self.user_id = user_id
        super().__init__(f"Session not found: {session_id}")


class AgentTreeError(AgentCoreError):
    """Raised when an agent tree is built incorrectly."""


class GraphDefinitionError(AgentCoreError):
    """Raised when a graph agent's nodes or edges are invalid."""

    def __init__(self, graph_name: str, message: str):
        self.graph_name = graph_name
        super().__init__(f"Invalid graph '{graph_name}': {message}")
