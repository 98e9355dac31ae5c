"""Entry point for running an agent tree against a session."""

from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Any

from agentcore.agents import BaseAgent, ExecutionContext
from agentcore.errors import SessionNotFoundError
from agentcore.events import Content, Event
from agentcore.platform.observability import bind_run, get_logger
from agentcore.run_config import RunConfig
from agentcore.sessions import InMemorySessionService, SessionService

logger = get_logger(__name__)


class Runner:
    """Runs the root agent for one user message at a time.

    The user message and every non-partial event are appended to the
    session as they are produced, so state deltas are visible to the next
    step of the run.

    Args:
        app_name: Application name sessions are scoped to
        agent: Root of the agent tree
        session_service: Storage for sessions
        memory_service: Optional memory service, available to tools
        artifact_service: Optional artifact service, available to tools
    """

    def __init__(
        self,
        *,
        app_name: str,
        agent: BaseAgent,
        session_service: SessionService,
        memory_service: Any = None,
        artifact_service: Any = None,
    ) -> None:
        self.app_name = app_name
        self.agent = agent
        self.session_service = session_service
        self.memory_service = memory_service
        self.artifact_service = artifact_service

    async def run(
        self,
        *,
        user_id: str,
        session_id: str,
        new_message: str | Content,
        run_config: RunConfig | None = None,
    ) -> AsyncIterator[Event]:
        """Run the agent tree on a new user message.

        Args:
            user_id: Owner of the session
            session_id: Session to run in
            new_message: User input
            run_config: Per-run settings

        Yields:
            Every event of the run, partial events included

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        session = await self.session_service.get_session(self.app_name, user_id, session_id)
        if session is None:
            raise SessionNotFoundError(session_id, self.app_name, user_id)

        invocation_id = ExecutionContext.new_invocation_id()
        with bind_run(invocation_id, session_id=session_id):
            ctx = ExecutionContext(
                session=session,
                invocation_id=invocation_id,
                agent=self.agent,
                session_service=self.session_service,
                memory_service=self.memory_service,
                artifact_service=self.artifact_service,
                run_config=run_config or RunConfig(),
            )
            content = Content.from_text(new_message) if isinstance(new_message, str) else new_message
            await self.session_service.append_event(
                session, Event(author="user", invocation_id=invocation_id, content=content)
            )
            logger.info("run_started", app_name=self.app_name, agent=self.agent.name)

            async with aclosing(self.agent.run(ctx)) as events:
                async for event in events:
                    if not event.partial:
                        await self.session_service.append_event(session, event)
                    yield event

            await self.session_service.update_session(session)
            logger.info("run_finished", llm_calls=ctx.llm_call_count)


class InMemoryRunner(Runner):
    """Runner with an in-memory session service, for tests and local use."""

    def __init__(self, agent: BaseAgent, *, app_name: str = "InMemoryRunner") -> None:
        super().__init__(app_name=app_name, agent=agent, session_service=InMemorySessionService())
