"""
File-Based Session Store
========================

Persists sessions as JSON records under ``{sessions_dir}/{session_id}.json``.

Responsibilities:
- Versioned records (``schemaVersion``) with camelCase keys
- Atomic writes (temp file + rename) so a crash never leaves a partial record
- Resume selection: most recently modified incomplete session wins
- Corrupt records are skipped with a warning when scanning
"""

import json
from pathlib import Path

import aiofiles
import structlog
from pydantic import ValidationError

from handoff.core.domain.errors import SessionPersistenceError
from handoff.core.domain.session import Session
from handoff.infrastructure.persistence.atomic import atomic_write_text_async

logger = structlog.get_logger()

SCHEMA_VERSION = 1


class FileSessionStore:
    """
    JSON file session store.

    Thread Safety:
        Not thread-safe. One orchestrator owns a sessions directory.

    Example:
        >>> store = FileSessionStore("sessions")
        >>> await store.save(new_session("demo"))
        >>> latest = await store.load_latest()
    """

    def __init__(self, sessions_dir: str | Path):
        self.sessions_dir = Path(sessions_dir)
        self.logger = logger.bind(component="file_session_store")

    def _get_session_path(self, session_id: str) -> Path:
        return self.sessions_dir / f"{session_id}.json"

    async def save(self, session: Session) -> None:
        """
        Write the session record atomically.

        Raises:
            SessionPersistenceError: If the record cannot be written
        """
        record = {"schemaVersion": SCHEMA_VERSION}
        record.update(session.model_dump(mode="json", by_alias=True))

        path = self._get_session_path(session.session_id)
        try:
            self.sessions_dir.mkdir(parents=True, exist_ok=True)
            await atomic_write_text_async(path, json.dumps(record, indent=2))
        except OSError as e:
            self.logger.error("session.save_failed", session_id=session.session_id, error=str(e))
            raise SessionPersistenceError(session.session_id, str(e)) from e

        self.logger.debug(
            "session.saved",
            session_id=session.session_id,
            sequence=session.sequence_number,
            complete=session.is_complete,
        )

    async def load(self, session_id: str) -> Session | None:
        """Load a session by id; None if missing or unreadable."""
        path = self._get_session_path(session_id)
        if not path.exists():
            return None
        return await self._read_record(path)

    async def load_latest(self) -> Session | None:
        """Return the most recently modified incomplete session, or None."""
        for path in self._paths_newest_first():
            session = await self._read_record(path)
            if session is not None and not session.is_complete:
                self.logger.debug("session.latest_found", session_id=session.session_id)
                return session
        return None

    async def list_sessions(self) -> list[Session]:
        """All readable sessions, most recently modified first."""
        sessions = []
        for path in self._paths_newest_first():
            session = await self._read_record(path)
            if session is not None:
                sessions.append(session)
        return sessions

    def _paths_newest_first(self) -> list[Path]:
        if not self.sessions_dir.is_dir():
            return []

        stamped = []
        for path in self.sessions_dir.glob("*.json"):
            try:
                stamped.append((path.stat().st_mtime, path))
            except OSError:
                continue
        stamped.sort(key=lambda item: item[0], reverse=True)
        return [path for _, path in stamped]

    async def _read_record(self, path: Path) -> Session | None:
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                data = json.loads(await f.read())
            return Session.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            self.logger.warning("session.record_corrupt", path=str(path), error=str(e))
            return None
