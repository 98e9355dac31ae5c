"""Agents and composition operators."""

from agentcore.agents.base import AgentKind, BaseAgent
from agentcore.agents.context import ExecutionContext
from agentcore.agents.graph import GraphAgent, GraphNode
from agentcore.agents.llm_agent import LlmAgent
from agentcore.agents.loop import LoopAgent
from agentcore.agents.parallel import ParallelAgent
from agentcore.agents.sequential import SequentialAgent

__all__ = [
    "AgentKind",
    "BaseAgent",
    "ExecutionContext",
    "GraphAgent",
    "GraphNode",
    "LlmAgent",
    "LoopAgent",
    "ParallelAgent",
    "SequentialAgent",
]
