"""Runs sub-agents concurrently and merges their events."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import aclosing

from agentcore.agents.base import AgentKind, BaseAgent
from agentcore.agents.context import ExecutionContext
from agentcore.events import Event
from agentcore.platform.observability import branch_ctx, get_logger

logger = get_logger(__name__)

type _Item = tuple[int, Event | None]


class ParallelAgent(BaseAgent):
    """Runs every sub-agent concurrently on its own branch.

    Events are yielded as soon as any branch produces one. A branch does not
    continue past an event until the consumer has taken it, so no branch
    runs ahead of the consumer. A branch that raises is logged and dropped;
    the other branches keep running. Closing the stream early cancels every
    branch still running.
    """

    kind = AgentKind.PARALLEL

    async def _run_impl(self, ctx: ExecutionContext) -> AsyncIterator[Event]:
        if not self.sub_agents:
            return
        queue: asyncio.Queue[_Item] = asyncio.Queue()
        resume = [asyncio.Event() for _ in self.sub_agents]
        tasks = [
            asyncio.create_task(
                self._drive(index, sub_agent, ctx.derive_child(sub_agent), queue, resume[index]),
                name=f"{self.name}.{sub_agent.name}",
            )
            for index, sub_agent in enumerate(self.sub_agents)
        ]
        active = len(tasks)
        try:
            while active:
                index, event = await queue.get()
                if event is None:
                    active -= 1
                    continue
                yield event
                resume[index].set()
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _drive(
        self,
        index: int,
        agent: BaseAgent,
        ctx: ExecutionContext,
        queue: asyncio.Queue[_Item],
        resume: asyncio.Event,
    ) -> None:
        # Runs in its own task, so the value stays local to this branch
        branch_ctx.set(ctx.branch)
        try:
            async with aclosing(agent.run(ctx)) as events:
                async for event in events:
                    resume.clear()
                    queue.put_nowait((index, event))
                    await resume.wait()
        except Exception:
            logger.exception("parallel_branch_failed", agent=self.name)
        finally:
            queue.put_nowait((index, None))
