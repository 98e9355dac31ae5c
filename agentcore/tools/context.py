"""Context handed to tools and tool callbacks."""

from typing import TYPE_CHECKING

from agentcore.events import EventActions
from agentcore.sessions import Session, State

if TYPE_CHECKING:
    from agentcore.agents.context import ExecutionContext


class ToolContext:
    """Per-call view of the execution context.

    State writes are recorded in `actions.state_delta` and reach the session
    when the function-response event carrying them is appended.
    """

    def __init__(
        self,
        invocation_context: "ExecutionContext",
        function_call_id: str | None = None,
        event_actions: EventActions | None = None,
    ) -> None:
        self.invocation_context = invocation_context
        self.function_call_id = function_call_id
        self.actions = event_actions or EventActions()

    @property
    def agent_name(self) -> str:
        return self.invocation_context.agent.name

    @property
    def invocation_id(self) -> str:
        return self.invocation_context.invocation_id

    @property
    def session(self) -> Session:
        return self.invocation_context.session

    @property
    def state(self) -> State:
        return State(self.invocation_context.session.state, self.actions.state_delta)
