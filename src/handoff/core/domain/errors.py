"""Exception hierarchy for handoff."""


class HandoffError(Exception):
    """Base class for all handoff errors."""


class SandboxViolationError(HandoffError, ValueError):
    """A path resolved outside the workspace root."""

    def __init__(self, path: str):
        super().__init__(f"Path '{path}' is outside workspace")
        self.path = path


class SessionPersistenceError(HandoffError):
    """Session state could not be written; the loop must stop."""

    def __init__(self, session_id: str, reason: str):
        super().__init__(f"Failed to persist session '{session_id}': {reason}")
        self.session_id = session_id


class SessionNotFoundError(HandoffError):
    """No session matches the lookup."""


class ConfigurationError(HandoffError):
    """Configuration file is unreadable or invalid."""
