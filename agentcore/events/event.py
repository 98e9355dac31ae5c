"""Event records produced by agents during a run.

Events are immutable once yielded. The flow engine assigns a fresh `id` when
it finalizes model output; no other field is rewritten after an event leaves
the component that created it.
"""

import time
import uuid
from dataclasses import dataclass, field
from typing import Any

from agentcore.events.content import Content, FunctionCall, FunctionResponse


@dataclass
class EventActions:
    """Control flags and state changes attached to an event.

    Attributes:
        state_delta: Session state changes to apply when the event is appended
        transfer_to_agent: Name of the agent to hand control to
        escalate: Signals an enclosing loop to stop iterating
        skip_summarization: Marks a tool result as the final answer of the turn
    """

    state_delta: dict[str, Any] = field(default_factory=dict)
    transfer_to_agent: str | None = None
    escalate: bool = False
    skip_summarization: bool = False

    def merge(self, other: "EventActions") -> None:
        """Fold another set of actions into this one, later values winning."""
        self.state_delta.update(other.state_delta)
        if other.transfer_to_agent:
            self.transfer_to_agent = other.transfer_to_agent
        self.escalate = self.escalate or other.escalate
        self.skip_summarization = self.skip_summarization or other.skip_summarization


@dataclass(frozen=True)
class Event:
    """One unit of conversational output plus control flags.

    Attributes:
        author: Agent name, or "user" for user input
        invocation_id: Identifier of the run that produced the event
        branch: Dot-separated path of the producing agent in the composition tree
        content: Text, function calls or function responses
        actions: Control flags and state delta
        partial: True for streaming chunks that will be followed by more output
        error_code: Machine-readable error kind, for error-coded events
        error_message: Human-readable error description
        long_running_tool_ids: Function call ids whose results arrive in a later turn
        id: Event identifier
        timestamp: Creation time, seconds since the epoch
    """

    author: str
    invocation_id: str = ""
    branch: str | None = None
    content: Content | None = None
    actions: EventActions = field(default_factory=EventActions)
    partial: bool = False
    turn_complete: bool = False
    error_code: str | None = None
    error_message: str | None = None
    long_running_tool_ids: frozenset[str] = frozenset()
    id: str = field(default_factory=lambda: Event.new_id())
    timestamp: float = field(default_factory=time.time)

    @staticmethod
    def new_id() -> str:
        return uuid.uuid4().hex[:8]

    @property
    def text(self) -> str:
        return self.content.text if self.content else ""

    def get_function_calls(self) -> list[FunctionCall]:
        if not self.content:
            return []
        return [part.function_call for part in self.content.parts if part.function_call]

    def get_function_responses(self) -> list[FunctionResponse]:
        if not self.content:
            return []
        return [part.function_response for part in self.content.parts if part.function_response]

    def is_final_response(self) -> bool:
        """Whether this event concludes the producing agent's turn loop.

        Tool results that skip summarization and calls to long-running tools end
        the turn. Otherwise the event is final when it carries no function
        calls or responses and is not a streaming chunk.
        """
        if self.actions.skip_summarization or self.long_running_tool_ids:
            return True
        return (
            not self.get_function_calls()
            and not self.get_function_responses()
            and not self.partial
        )
