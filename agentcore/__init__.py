"""agentcore - Multi-agent execution core with MCP tool integration."""

from agentcore.agents import (
    AgentKind,
    BaseAgent,
    ExecutionContext,
    GraphAgent,
    GraphNode,
    LlmAgent,
    LoopAgent,
    ParallelAgent,
    SequentialAgent,
)
from agentcore.events import Content, Event, EventActions, Part
from agentcore.models import BaseLlm, LiteLlm
from agentcore.run_config import RunConfig, StreamingMode
from agentcore.runners import InMemoryRunner, Runner
from agentcore.sessions import InMemorySessionService, Session, SessionService
from agentcore.tools import BaseTool, FunctionTool, ToolContext, create_tool, exit_loop, transfer_to_agent

__all__ = [
    "AgentKind",
    "BaseAgent",
    "BaseLlm",
    "BaseTool",
    "Content",
    "Event",
    "EventActions",
    "ExecutionContext",
    "FunctionTool",
    "GraphAgent",
    "GraphNode",
    "InMemoryRunner",
    "InMemorySessionService",
    "LiteLlm",
    "LlmAgent",
    "LoopAgent",
    "ParallelAgent",
    "Part",
    "RunConfig",
    "Runner",
    "SequentialAgent",
    "Session",
    "SessionService",
    "StreamingMode",
    "ToolContext",
    "create_tool",
    "exit_loop",
    "transfer_to_agent",
]
