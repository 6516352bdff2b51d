"""
Parsed Commands

This module defines the closed set of commands an agent reply can contain.
Each command is an immutable value carrying only the attributes its kind
requires. The executor dispatches on the concrete class, so adding a new
variant means adding a case there as well.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union


class CommandType(str, Enum):
    """Wire name of each command kind (also used as the result tag)."""

    CREATE_FILE = "CREATE_FILE"
    EDIT_FILE = "EDIT_FILE"
    DELETE_FILE = "DELETE_FILE"
    READ_FILE = "READ_FILE"
    RUN_COMMAND = "RUN_COMMAND"
    MESSAGE = "MESSAGE"
    DONE = "DONE"
    PARSE_ERROR = "PARSE_ERROR"


@dataclass(frozen=True)
class CreateFileCommand:
    """Create or overwrite a file with the given content."""

    type: ClassVar[CommandType] = CommandType.CREATE_FILE

    path: str
    content: str


@dataclass(frozen=True)
class EditFileCommand:
    """
    Replace an inclusive, 1-indexed line range of an existing file.

    Attributes:
        path: Workspace-relative file path
        start_line: First line to replace (1-indexed)
        end_line: Last line to replace (inclusive, clamped to end of file)
        content: Replacement text; may span more or fewer lines than the range
    """

    type: ClassVar[CommandType] = CommandType.EDIT_FILE

    path: str
    start_line: int
    end_line: int
    content: str


@dataclass(frozen=True)
class DeleteFileCommand:
    type: ClassVar[CommandType] = CommandType.DELETE_FILE

    path: str


@dataclass(frozen=True)
class ReadFileCommand:
    """Request a file's content; it is delivered in the next outbox."""

    type: ClassVar[CommandType] = CommandType.READ_FILE

    path: str


@dataclass(frozen=True)
class RunCommand:
    type: ClassVar[CommandType] = CommandType.RUN_COMMAND

    command: str


@dataclass(frozen=True)
class MessageCommand:
    type: ClassVar[CommandType] = CommandType.MESSAGE

    text: str


@dataclass(frozen=True)
class DoneCommand:
    """Terminal command: the agent considers the task finished."""

    type: ClassVar[CommandType] = CommandType.DONE

    message: str


@dataclass(frozen=True)
class ParseErrorCommand:
    """A malformed or incomplete block, kept in position so the agent sees it."""

    type: ClassVar[CommandType] = CommandType.PARSE_ERROR

    error: str


Command = Union[
    CreateFileCommand,
    EditFileCommand,
    DeleteFileCommand,
    ReadFileCommand,
    RunCommand,
    MessageCommand,
    DoneCommand,
    ParseErrorCommand,
]
