"""
Command Parser

Turns the free-form text of an agent reply into an ordered list of commands.

Commands are square-bracket tags on their own line:

    [DELETE_FILE path="old.txt"]                 (self-closing)
    [CREATE_FILE path="src/app.py"]              (block)
    print("hello")
    [/CREATE_FILE]

Attribute values are double-quoted with no escaping. Everything outside a
recognized tag is ignored. Parsing never raises: malformed or unterminated
blocks become ParseErrorCommand entries at the position they occurred, and
scanning resumes on the following line.
"""

import re
from typing import Callable

import structlog

from handoff.core.domain.commands import (
    Command,
    CommandType,
    CreateFileCommand,
    DeleteFileCommand,
    DoneCommand,
    EditFileCommand,
    MessageCommand,
    ParseErrorCommand,
    ReadFileCommand,
    RunCommand,
)

logger = structlog.get_logger()

OPEN_TAG_PATTERN = re.compile(r'^\[(?P<name>[A-Z][A-Z_]*)(?P<attrs>(?:\s(?:[^\]"]|"[^"]*")*)?)\]')
ATTRIBUTE_PATTERN = re.compile(r'(\w+)\s*=\s*"([^"]*)"')
INTEGER_PATTERN = re.compile(r"[+-]?\d+")

SELF_CLOSING_TAGS = {CommandType.DELETE_FILE.value, CommandType.READ_FILE.value}
BLOCK_TAGS = {
    CommandType.CREATE_FILE.value,
    CommandType.EDIT_FILE.value,
    CommandType.RUN_COMMAND.value,
    CommandType.MESSAGE.value,
    CommandType.DONE.value,
}


def parse(text: str) -> list[Command]:
    """
    Parse reply text into commands, in file order.

    Args:
        text: Raw reply text (any line endings)

    Returns:
        List of commands; malformed blocks appear as ParseErrorCommand
    """
    lines = [line.rstrip("\r") for line in (text or "").split("\n")]
    commands: list[Command] = []
    i = 0

    while i < len(lines):
        trimmed = lines[i].strip()
        match = OPEN_TAG_PATTERN.match(trimmed)
        if match is None or not trimmed.endswith("]"):
            i += 1
            continue

        name = match.group("name")
        attrs = _parse_attributes(match.group("attrs"))
        rest = trimmed[match.end():]

        if name in SELF_CLOSING_TAGS:
            commands.append(_build_self_closing(name, attrs))
            i += 1
            continue

        if name not in BLOCK_TAGS:
            i += 1
            continue

        header_error = _validate_block_header(name, attrs)
        if header_error is not None:
            commands.append(header_error)
            i += 1
            continue

        path = attrs.get("path")
        target = f" for '{path}'" if path else ""
        closing_tag = f"[/{name}]"
        if rest and not rest.endswith(closing_tag):
            commands.append(ParseErrorCommand(f"{name}{target} has unexpected text after opening tag"))
            i += 1
            continue

        if rest:
            # Single-line form: [MESSAGE]text[/MESSAGE]
            body = rest[: -len(closing_tag)]
            end_index = i
        else:
            body, end_index = _collect_body(lines, i + 1, closing_tag)

        if end_index < 0:
            commands.append(ParseErrorCommand(f"{name}{target} missing closing tag"))
            i += 1
            continue

        commands.append(_BLOCK_BUILDERS[name](attrs, body))
        i = end_index + 1

    logger.debug("reply.parsed", commands=len(commands))
    return commands


def _parse_attributes(attr_text: str) -> dict[str, str]:
    return {key.lower(): value for key, value in ATTRIBUTE_PATTERN.findall(attr_text or "")}


def _collect_body(lines: list[str], start: int, closing_tag: str) -> tuple[str, int]:
    """Collect verbatim body lines up to the closing tag; (-1) if it never comes."""
    body_lines: list[str] = []
    for j in range(start, len(lines)):
        if lines[j].strip() == closing_tag:
            return "\n".join(body_lines), j
        body_lines.append(lines[j])
    return "", -1


def _build_self_closing(name: str, attrs: dict[str, str]) -> Command:
    path = attrs.get("path")
    if not path:
        return ParseErrorCommand(f"{name} missing path attribute")
    if name == CommandType.DELETE_FILE.value:
        return DeleteFileCommand(path)
    return ReadFileCommand(path)


def _validate_block_header(name: str, attrs: dict[str, str]) -> ParseErrorCommand | None:
    if name == CommandType.CREATE_FILE.value and not attrs.get("path"):
        return ParseErrorCommand("CREATE_FILE missing path attribute")

    if name == CommandType.EDIT_FILE.value:
        missing = [key for key in ("path", "start_line", "end_line") if not attrs.get(key)]
        if missing:
            return ParseErrorCommand(
                f"EDIT_FILE missing required attribute(s): {', '.join(missing)}"
            )
        invalid = [key for key in ("start_line", "end_line") if not _is_int(attrs[key])]
        if invalid:
            details = ", ".join(f'{key}="{attrs[key]}"' for key in invalid)
            return ParseErrorCommand(f"EDIT_FILE start_line/end_line must be integers ({details})")

    return None


def _is_int(value: str) -> bool:
    return INTEGER_PATTERN.fullmatch(value.strip()) is not None


_BLOCK_BUILDERS: dict[str, Callable[[dict[str, str], str], Command]] = {
    CommandType.CREATE_FILE.value: lambda attrs, body: CreateFileCommand(attrs["path"], body),
    CommandType.EDIT_FILE.value: lambda attrs, body: EditFileCommand(
        attrs["path"], int(attrs["start_line"].strip()), int(attrs["end_line"].strip()), body
    ),
    CommandType.RUN_COMMAND.value: lambda attrs, body: RunCommand(body.strip()),
    CommandType.MESSAGE.value: lambda attrs, body: MessageCommand(body.strip()),
    CommandType.DONE.value: lambda attrs, body: DoneCommand(body.strip()),
}
