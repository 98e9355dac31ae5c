"""Session record: the ordered event log and state of one conversation."""

import time
from dataclasses import dataclass, field

from agentcore.events import Event
from agentcore.sessions.state import SessionState


@dataclass
class Session:
    """A conversation owned by a session service.

    The execution core holds a reference to the session for the whole run and
    never copies it across branches, so state written by one agent is visible
    to every other agent of the same run.

    Attributes:
        id: Session identifier
        app_name: Application the session belongs to
        user_id: Owner of the session
        state: Key-value state with pending-delta tracking
        events: Ordered event log
        last_update_time: Seconds since the epoch of the latest change
    """

    id: str
    app_name: str
    user_id: str
    state: SessionState = field(default_factory=SessionState)
    events: list[Event] = field(default_factory=list)
    last_update_time: float = field(default_factory=time.time)
