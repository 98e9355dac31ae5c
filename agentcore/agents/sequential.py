"""Runs sub-agents one after another."""

from collections.abc import AsyncIterator
from contextlib import aclosing

from agentcore.agents.base import AgentKind, BaseAgent
from agentcore.agents.context import ExecutionContext
from agentcore.events import Event


class SequentialAgent(BaseAgent):
    """Runs each sub-agent to completion, in order.

    Sub-agents run on their own branches, so they do not see each other's
    conversation; pass results along through session state (`output_key`).
    """

    kind = AgentKind.SEQUENTIAL

    async def _run_impl(self, ctx: ExecutionContext) -> AsyncIterator[Event]:
        for sub_agent in self.sub_agents:
            async with aclosing(sub_agent.run(ctx.derive_child(sub_agent))) as events:
                async for event in events:
                    yield event
            if ctx.end_invocation:
                return
