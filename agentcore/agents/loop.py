"""Repeats its sub-agents until one escalates."""

from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing

from agentcore.agents.base import AgentKind, BaseAgent
from agentcore.agents.context import ExecutionContext
from agentcore.events import Event
from agentcore.platform.observability import get_logger

logger = get_logger(__name__)


class LoopAgent(BaseAgent):
    """Runs its sub-agents in order, over and over.

    The loop stops when an event escalates (see `exit_loop`), once the
    sub-agent that produced the event finishes, or after `max_iterations`
    passes over the sub-agents.
    """

    kind = AgentKind.LOOP

    def __init__(
        self,
        name: str,
        description: str = "",
        sub_agents: Sequence[BaseAgent] = (),
        max_iterations: int | None = None,
    ) -> None:
        if max_iterations is not None and max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")
        super().__init__(name, description, sub_agents)
        self.max_iterations = max_iterations

    async def _run_impl(self, ctx: ExecutionContext) -> AsyncIterator[Event]:
        if not self.sub_agents:
            return
        iteration = 0
        while self.max_iterations is None or iteration < self.max_iterations:
            iteration += 1
            for sub_agent in self.sub_agents:
                escalated = False
                async with aclosing(sub_agent.run(ctx.derive_child(sub_agent))) as events:
                    async for event in events:
                        escalated = escalated or event.actions.escalate
                        yield event
                if escalated:
                    logger.debug("loop_escalated", agent=self.name, by=sub_agent.name, iteration=iteration)
                    return
                if ctx.end_invocation:
                    return
        logger.debug("loop_max_iterations_reached", agent=self.name, max_iterations=self.max_iterations)
