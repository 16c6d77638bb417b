"""Process-local session storage."""

from dataclasses import dataclass, field
from uuid import UUID, uuid4

from photo_run.domain.sessions import Session
from photo_run.services.workflow import SessionRepository


@dataclass
class InMemorySessionRepository(SessionRepository):
    """Keeps sessions in a dict for the lifetime of the process."""

    sessions: dict[UUID, Session] = field(default_factory=dict)

    def create(self, session: Session) -> UUID:
        """Store a new session under a random id."""
        session_id = uuid4()
        self.sessions[session_id] = session
        return session_id

    def get(self, session_id: UUID) -> Session | None:
        """Return a session by id, if present."""
        return self.sessions.get(session_id)

    def save(self, session_id: UUID, session: Session) -> None:
        """Replace the stored session."""
        if session_id not in self.sessions:
            raise KeyError(session_id)
        self.sessions[session_id] = session

    def delete(self, session_id: UUID) -> None:
        """Drop a session."""
        self.sessions.pop(session_id, None)
