"""Execution context shared by the agents of one run."""

import uuid
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from agentcore.errors import LlmCallLimitExceededError
from agentcore.run_config import RunConfig
from agentcore.sessions import Session, SessionService

if TYPE_CHECKING:
    from agentcore.agents.base import BaseAgent


@dataclass
class _InvocationControl:
    """Mutable run-wide state shared by every context derived from one run."""

    end_invocation: bool = False
    llm_call_count: int = 0


@dataclass(frozen=True)
class ExecutionContext:
    """Context of one agent within one run.

    Contexts are cloned, never mutated, when control moves to another agent.
    Clones share the session, the services and the run-wide control state by
    reference; only identity fields (agent, branch) differ.

    Attributes:
        session: Session the run reads from and appends to
        invocation_id: Identifier of the run
        agent: Agent currently executing
        session_service: Service owning the session
        branch: Dot-separated path of the agent in the composition tree
        memory_service: Optional memory service, passed through to tools
        artifact_service: Optional artifact service, passed through to tools
        run_config: Per-run settings
    """

    session: Session
    invocation_id: str
    agent: "BaseAgent"
    session_service: SessionService
    branch: str | None = None
    memory_service: Any = None
    artifact_service: Any = None
    run_config: RunConfig = RunConfig()
    _control: _InvocationControl = field(default_factory=_InvocationControl, repr=False)

    @staticmethod
    def new_invocation_id() -> str:
        return f"e-{uuid.uuid4()}"

    @property
    def session_id(self) -> str:
        return self.session.id

    @property
    def end_invocation(self) -> bool:
        return self._control.end_invocation

    def cancel(self) -> None:
        """Stop the run after the current step; in-flight tool calls complete."""
        self._control.end_invocation = True

    @property
    def llm_call_count(self) -> int:
        return self._control.llm_call_count

    def increment_llm_call_count(self) -> None:
        """Count one model call against the run's budget.

        Raises:
            LlmCallLimitExceededError: If the call exceeds `run_config.max_llm_calls`
        """
        self._control.llm_call_count += 1
        limit = self.run_config.max_llm_calls
        if limit > 0 and self._control.llm_call_count > limit:
            raise LlmCallLimitExceededError(limit)

    def for_agent(self, agent: "BaseAgent") -> "ExecutionContext":
        """Clone with a different current agent and the same branch."""
        return replace(self, agent=agent)

    def derive_child(self, child: "BaseAgent") -> "ExecutionContext":
        """Clone for a sub-agent, extending the branch with `{parent}.{child}`."""
        suffix = f"{self.agent.name}.{child.name}"
        branch = f"{self.branch}.{suffix}" if self.branch else suffix
        return replace(self, agent=child, branch=branch)
