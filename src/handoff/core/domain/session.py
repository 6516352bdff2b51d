"""
Session State

A Session is one task's long-running exchange with the external agent. It is
treated as an immutable value: every change goes through one of the
transition functions below, which return an updated copy. This keeps each
cycle's transformation testable without touching the filesystem.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from handoff.core.domain.models import CommandResult, ExecutionOutcome

SESSION_ID_LENGTH = 8


class CycleState(str, Enum):
    """Orchestrator state for the current session."""

    AWAITING_FIRST_REQUEST = "awaiting_first_request"
    AWAITING_REPLY = "awaiting_reply"
    PROCESSING = "processing"
    COMPLETE = "complete"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Session(BaseModel):
    """
    Persistent session record.

    Attributes:
        session_id: Fixed-width random token, immutable after creation
        task: Free-text task description
        sequence_number: Cycle counter; starts at 0, incremented before each outbox
        is_complete: Completion flag; only ever moves from False to True
        created_at: Creation timestamp (UTC)
        updated_at: Last-update timestamp (UTC)
        last_results: Results of the most recently processed reply
        read_file_requests: Paths whose content goes into the next outbox
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    session_id: str
    task: str
    sequence_number: int = 0
    is_complete: bool = False
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    last_results: list[CommandResult] = Field(default_factory=list)
    read_file_requests: list[str] = Field(default_factory=list)

    @property
    def state(self) -> CycleState:
        if self.is_complete:
            return CycleState.COMPLETE
        if self.sequence_number == 0:
            return CycleState.AWAITING_FIRST_REQUEST
        return CycleState.AWAITING_REPLY

    @property
    def outbox_file_name(self) -> str:
        return f"{self.session_id}_seq{self.sequence_number:04d}.txt"


def new_session(task: str) -> Session:
    """Create a fresh, incomplete session at sequence 0."""
    now = _utcnow()
    return Session(
        session_id=uuid.uuid4().hex[:SESSION_ID_LENGTH],
        task=task,
        created_at=now,
        updated_at=now,
    )


def advance_sequence(session: Session) -> Session:
    """Start a new cycle: bump the sequence number exactly once."""
    return session.model_copy(
        update={"sequence_number": session.sequence_number + 1, "updated_at": _utcnow()}
    )


def clear_read_requests(session: Session) -> Session:
    """Drop pending reads once they have been delivered in an outbox."""
    if not session.read_file_requests:
        return session
    return session.model_copy(update={"read_file_requests": []})


def apply_outcome(session: Session, outcome: ExecutionOutcome) -> Session:
    """
    Fold an execution outcome into the session.

    Replaces the last-results snapshot and pending reads with those of the
    outcome. Completion is sticky: a completed session never reopens.

    Args:
        session: Session before processing the reply
        outcome: Result of executing the reply's commands

    Returns:
        Updated session
    """
    return session.model_copy(
        update={
            "last_results": list(outcome.results),
            "read_file_requests": list(outcome.read_file_requests),
            "is_complete": session.is_complete or outcome.task_complete,
            "updated_at": _utcnow(),
        }
    )
