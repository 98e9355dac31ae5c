"""Agent tree nodes.

Every agent is one of a closed set of kinds (`AgentKind`). A class that
does not declare its kind is rejected when it is defined, so code that
branches on `agent.kind` can stay exhaustive.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing
from enum import StrEnum
from typing import ClassVar

from opentelemetry import trace

from agentcore.agents.context import ExecutionContext
from agentcore.errors import AgentTreeError
from agentcore.events import Event
from agentcore.platform.observability import get_logger
from agentcore.platform.observability.metrics import AgentMetricsLabels, collect_agent_metrics

logger = get_logger(__name__)
tracer = trace.get_tracer(__name__)

RESERVED_AGENT_NAMES = frozenset({"user"})


class AgentKind(StrEnum):
    LLM = "llm"
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    LOOP = "loop"
    GRAPH = "graph"


class BaseAgent(ABC):
    """A node in the agent tree that produces a stream of events.

    Attributes:
        kind: Which variant this agent is
        name: Unique name within the tree; a Python identifier
        description: What the agent does, shown to other agents for transfer
        sub_agents: Children, in order
        parent_agent: Parent, set when this agent is attached as a sub-agent
    """

    kind: ClassVar[AgentKind]

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        if not isinstance(getattr(cls, "kind", None), AgentKind):
            raise TypeError(f"{cls.__name__} must declare `kind` as an AgentKind member")

    def __init__(self, name: str, description: str = "", sub_agents: Sequence["BaseAgent"] = ()) -> None:
        if not name.isidentifier():
            raise AgentTreeError(f"Agent name must be a Python identifier, got {name!r}")
        if name in RESERVED_AGENT_NAMES:
            raise AgentTreeError(f"Agent name {name!r} is reserved")
        self.name = name
        self.description = description
        self.parent_agent: BaseAgent | None = None
        self.sub_agents: list[BaseAgent] = []
        for sub_agent in sub_agents:
            self._attach(sub_agent)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    def _attach(self, sub_agent: "BaseAgent") -> None:
        if sub_agent.parent_agent is not None:
            raise AgentTreeError(
                f"Agent {sub_agent.name} already has parent {sub_agent.parent_agent.name}, "
                f"cannot add it to {self.name}"
            )
        if any(existing.name == sub_agent.name for existing in self.sub_agents):
            raise AgentTreeError(f"Agent {self.name} already has a sub-agent named {sub_agent.name}")
        sub_agent.parent_agent = self
        self.sub_agents.append(sub_agent)

    @property
    def root_agent(self) -> "BaseAgent":
        agent = self
        while agent.parent_agent is not None:
            agent = agent.parent_agent
        return agent

    def find_agent(self, name: str) -> "BaseAgent | None":
        """Find this agent or a descendant by name."""
        if self.name == name:
            return self
        return self.find_sub_agent(name)

    def find_sub_agent(self, name: str) -> "BaseAgent | None":
        for sub_agent in self.sub_agents:
            found = sub_agent.find_agent(name)
            if found is not None:
                return found
        return None

    async def run(self, parent_context: ExecutionContext) -> AsyncIterator[Event]:
        """Run the agent and stream its events.

        Args:
            parent_context: Context of the caller; the agent runs in a clone
                            with itself as the current agent

        Yields:
            Events in production order
        """
        ctx = parent_context.for_agent(self)
        logger.debug("agent_run_started", agent=self.name, kind=str(self.kind), branch=ctx.branch)
        with tracer.start_as_current_span(f"agent_run [{self.name}]"):
            async with collect_agent_metrics(AgentMetricsLabels(self.name)):
                async with aclosing(self._run_impl(ctx)) as events:
                    async for event in events:
                        yield event
        logger.debug("agent_run_finished", agent=self.name)

    @abstractmethod
    def _run_impl(self, ctx: ExecutionContext) -> AsyncIterator[Event]:
        """Produce this agent's events; implemented as an async generator."""
