"""Session persistence protocol."""

from typing import Protocol

from handoff.core.domain.session import Session


class SessionStoreProtocol(Protocol):
    """
    Persists session records.

    Implementations must write atomically: a reader never observes a
    partially written record. A failed save raises SessionPersistenceError.
    """

    async def save(self, session: Session) -> None:
        ...

    async def load(self, session_id: str) -> Session | None:
        ...

    async def load_latest(self) -> Session | None:
        """Return the most recently modified incomplete session, if any."""
        ...

    async def list_sessions(self) -> list[Session]:
        ...
