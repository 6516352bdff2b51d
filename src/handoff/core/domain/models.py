"""
Core Domain Models

Results produced by executing parsed commands. A CommandResult is persisted
as part of the session record (camelCase keys on the wire), while an
ExecutionOutcome only lives for the duration of one cycle.
"""

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CommandResult(BaseModel):
    """
    Outcome of executing a single command.

    Attributes:
        command_type: Command kind tag (CREATE_FILE, ..., DONE, PARSE_ERROR)
        summary: Human-readable description of what happened
        success: Whether the command succeeded
        output: Captured process output, already truncated (may be empty)
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    command_type: str
    summary: str
    success: bool
    output: str = ""


@dataclass
class ExecutionOutcome:
    """
    Aggregate result of one execution pass over a reply.

    Attributes:
        results: One CommandResult per command, in input order
        read_file_requests: Paths queued by READ_FILE for the next outbox
        task_complete: True once a DONE command was executed
        done_message: Completion summary from the DONE command
    """

    results: list[CommandResult] = field(default_factory=list)
    read_file_requests: list[str] = field(default_factory=list)
    task_complete: bool = False
    done_message: str | None = None
