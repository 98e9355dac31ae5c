"""Sessions, state and the session service contract."""

from agentcore.sessions.service import InMemorySessionService, SessionService
from agentcore.sessions.session import Session
from agentcore.sessions.state import TEMP_PREFIX, SessionState, State

__all__ = [
    "TEMP_PREFIX",
    "InMemorySessionService",
    "Session",
    "SessionService",
    "SessionState",
    "State",
]
