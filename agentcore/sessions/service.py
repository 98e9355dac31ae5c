"""Session service contract and the in-memory implementation."""

import time
import uuid
from collections.abc import Mapping
from typing import Any, Protocol

from agentcore.events import Event
from agentcore.platform.observability import get_logger
from agentcore.sessions.session import Session
from agentcore.sessions.state import TEMP_PREFIX, SessionState

logger = get_logger(__name__)


class SessionService(Protocol):
    """Storage contract for sessions.

    The execution core only relies on these operations and never assumes a
    storage medium.
    """

    async def create_session(
        self,
        app_name: str,
        user_id: str,
        state: Mapping[str, Any] | None = None,
        session_id: str | None = None,
    ) -> Session: ...

    async def get_session(self, app_name: str, user_id: str, session_id: str) -> Session | None: ...

    async def update_session(self, session: Session) -> None: ...

    async def list_sessions(self, app_name: str, user_id: str) -> list[Session]: ...

    async def delete_session(self, app_name: str, user_id: str, session_id: str) -> None: ...

    async def append_event(self, session: Session, event: Event) -> Event: ...


class InMemorySessionService:
    """Session service keeping sessions in process memory.

    Sessions are returned by reference; callers observe each other's writes.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, dict[str, dict[str, Session]]] = {}

    async def create_session(
        self,
        app_name: str,
        user_id: str,
        state: Mapping[str, Any] | None = None,
        session_id: str | None = None,
    ) -> Session:
        """Create and store a new session.

        Args:
            app_name: Application the session belongs to
            user_id: Owner of the session
            state: Optional initial state
            session_id: Optional explicit id; a uuid4 is generated otherwise

        Returns:
            The stored session

        Raises:
            ValueError: If a session with the same id already exists
        """
        session_id = session_id or str(uuid.uuid4())
        user_sessions = self._sessions.setdefault(app_name, {}).setdefault(user_id, {})
        if session_id in user_sessions:
            raise ValueError(f"Session already exists: {session_id}")

        session = Session(
            id=session_id,
            app_name=app_name,
            user_id=user_id,
            state=SessionState(state),
        )
        user_sessions[session_id] = session
        logger.debug("session_created", app_name=app_name, user_id=user_id, session_id=session_id)
        return session

    async def get_session(self, app_name: str, user_id: str, session_id: str) -> Session | None:
        return self._sessions.get(app_name, {}).get(user_id, {}).get(session_id)

    async def update_session(self, session: Session) -> None:
        """Persist a session and clear its pending state delta."""
        self._sessions.setdefault(session.app_name, {}).setdefault(session.user_id, {})[
            session.id
        ] = session
        session.state.clear_delta()
        session.last_update_time = time.time()

    async def list_sessions(self, app_name: str, user_id: str) -> list[Session]:
        """List a user's sessions, most recently updated first."""
        sessions = self._sessions.get(app_name, {}).get(user_id, {}).values()
        return sorted(sessions, key=lambda s: s.last_update_time, reverse=True)

    async def delete_session(self, app_name: str, user_id: str, session_id: str) -> None:
        self._sessions.get(app_name, {}).get(user_id, {}).pop(session_id, None)

    async def append_event(self, session: Session, event: Event) -> Event:
        """Append an event to a session's log and apply its state delta.

        Partial events are streaming chunks and are not recorded. Keys with the
        `temp:` prefix live only for the current invocation and are not written
        to session state.

        Args:
            session: Session to append to
            event: Event to record

        Returns:
            The event, unchanged
        """
        if event.partial:
            return event

        delta = {
            key: value
            for key, value in event.actions.state_delta.items()
            if not key.startswith(TEMP_PREFIX)
        }
        if delta:
            session.state.apply_delta(delta)

        session.events.append(event)
        session.last_update_time = event.timestamp
        return event
