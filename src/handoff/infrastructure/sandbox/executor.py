"""
Sandboxed Command Executor

Applies parsed commands to the workspace directory and to the shell, in
order, producing one CommandResult per command. This is the only component
that mutates agent-authored files or spawns processes.

Every failure mode (sandbox violation, missing file, I/O error, non-zero exit,
timeout) is reported as a failed result so the agent can observe and correct
it on the next cycle. Nothing raised by a single command escapes ``execute``.
"""

from pathlib import Path
from typing import Callable, Sequence

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
from handoff.core.domain.errors import SandboxViolationError
from handoff.core.domain.models import CommandResult, ExecutionOutcome
from handoff.infrastructure.sandbox.shell import ShellRunner
from handoff.infrastructure.sandbox.workspace import WorkspaceSandbox

logger = structlog.get_logger()

TRUNCATION_MARKER = "\n... (output truncated)"


class SandboxedExecutor:
    """Executes commands against a sandboxed workspace.

    Args:
        sandbox: Workspace root and path validation
        command_timeout_seconds: Wall-clock limit for RUN_COMMAND
        max_output_length: Characters of process output kept per result
        shell_runner: Process spawner (defaults to ShellRunner)
        on_message: Sink for MESSAGE text shown to the operator
    """

    def __init__(
        self,
        sandbox: WorkspaceSandbox,
        command_timeout_seconds: float = 30,
        max_output_length: int = 4000,
        shell_runner: ShellRunner | None = None,
        on_message: Callable[[str], None] | None = None,
    ):
        self.sandbox = sandbox
        self.command_timeout_seconds = command_timeout_seconds
        self.max_output_length = max_output_length
        self.shell_runner = shell_runner or ShellRunner()
        self.on_message = on_message
        self.logger = logger.bind(component="sandboxed_executor")
        self.sandbox.ensure_exists()

    async def execute(self, commands: Sequence[Command]) -> ExecutionOutcome:
        """Execute commands strictly in input order.

        Args:
            commands: Parsed commands from one reply

        Returns:
            ExecutionOutcome with one result per command
        """
        outcome = ExecutionOutcome()

        for command in commands:
            try:
                result = await self._dispatch(command, outcome)
            except Exception as e:
                # Unknown variants and unforeseen errors become failed results
                self.logger.error(
                    "command.unexpected_error",
                    command_type=_type_name(command),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                result = CommandResult(
                    command_type=_type_name(command),
                    summary=f"Unexpected error: {e}",
                    success=False,
                )
            outcome.results.append(result)

        self.logger.info(
            "commands.executed",
            total=len(outcome.results),
            failed=sum(1 for r in outcome.results if not r.success),
            task_complete=outcome.task_complete,
        )
        return outcome

    async def _dispatch(self, command: Command, outcome: ExecutionOutcome) -> CommandResult:
        match command:
            case CreateFileCommand():
                return self._create_file(command)
            case EditFileCommand():
                return self._edit_file(command)
            case DeleteFileCommand():
                return self._delete_file(command)
            case ReadFileCommand():
                return self._read_file(command, outcome)
            case RunCommand():
                return await self._run_command(command)
            case MessageCommand():
                return self._message(command)
            case DoneCommand():
                outcome.task_complete = True
                outcome.done_message = command.message
                return CommandResult(
                    command_type=CommandType.DONE.value, summary=command.message, success=True
                )
            case ParseErrorCommand():
                return CommandResult(
                    command_type=CommandType.PARSE_ERROR.value, summary=command.error, success=False
                )
            case _:
                raise TypeError(f"Unhandled command variant: {type(command).__name__}")

    # ------------------------------------------------------------------
    # File commands
    # ------------------------------------------------------------------

    def _resolve(self, command_type: CommandType, path: str) -> Path | CommandResult:
        try:
            return self.sandbox.resolve(path)
        except SandboxViolationError as e:
            return CommandResult(
                command_type=command_type.value, summary=f"REJECTED: {e}", success=False
            )

    def _create_file(self, command: CreateFileCommand) -> CommandResult:
        kind = CommandType.CREATE_FILE
        target = self._resolve(kind, command.path)
        if isinstance(target, CommandResult):
            return target

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "w", encoding="utf-8", newline="") as f:
                f.write(command.content)
        except OSError as e:
            self.logger.error("file.create_failed", path=command.path, error=str(e))
            return _failure(kind, f"Failed to create '{command.path}': {e}")

        self.logger.info("file.created", path=command.path, size=len(command.content))
        return _success(kind, f"Created '{command.path}'")

    def _edit_file(self, command: EditFileCommand) -> CommandResult:
        kind = CommandType.EDIT_FILE
        target = self._resolve(kind, command.path)
        if isinstance(target, CommandResult):
            return target

        if not target.is_file():
            return _failure(kind, f"File '{command.path}' not found")

        try:
            lines = _split_lines(target.read_text(encoding="utf-8"))

            start = command.start_line - 1
            end = command.end_line - 1
            if start < 0 or end < start or start >= len(lines):
                return _failure(
                    kind,
                    f"Invalid line range {command.start_line}-{command.end_line} "
                    f"for file with {len(lines)} lines",
                )
            # Overrunning end_line is tolerated; start_line is not
            end = min(end, len(lines) - 1)

            lines[start : end + 1] = command.content.split("\n")
            target.write_text("\n".join(lines) + "\n", encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error("file.edit_failed", path=command.path, error=str(e))
            return _failure(kind, f"Failed to edit '{command.path}': {e}")

        self.logger.info(
            "file.edited", path=command.path, start=command.start_line, end=command.end_line
        )
        return _success(kind, f"Edited '{command.path}' lines {command.start_line}-{command.end_line}")

    def _delete_file(self, command: DeleteFileCommand) -> CommandResult:
        kind = CommandType.DELETE_FILE
        target = self._resolve(kind, command.path)
        if isinstance(target, CommandResult):
            return target

        if not target.is_file():
            return _failure(kind, f"File '{command.path}' not found")

        try:
            target.unlink()
        except OSError as e:
            self.logger.error("file.delete_failed", path=command.path, error=str(e))
            return _failure(kind, f"Failed to delete '{command.path}': {e}")

        self.logger.info("file.deleted", path=command.path)
        return _success(kind, f"Deleted '{command.path}'")

    def _read_file(self, command: ReadFileCommand, outcome: ExecutionOutcome) -> CommandResult:
        kind = CommandType.READ_FILE
        target = self._resolve(kind, command.path)
        if isinstance(target, CommandResult):
            return target

        if not target.is_file():
            return _failure(kind, f"File '{command.path}' not found")

        outcome.read_file_requests.append(command.path)
        return _success(kind, f"Queued '{command.path}' for next outbox")

    # ------------------------------------------------------------------
    # Shell and operator commands
    # ------------------------------------------------------------------

    async def _run_command(self, command: RunCommand) -> CommandResult:
        kind = CommandType.RUN_COMMAND
        self.logger.info("shell.running", command=command.command)

        try:
            result = await self.shell_runner.run(
                command.command, cwd=self.sandbox.root, timeout=self.command_timeout_seconds
            )
        except OSError as e:
            self.logger.error("shell.spawn_failed", command=command.command, error=str(e))
            return _failure(kind, f"Failed to run '{command.command}': {e}")

        output = self._truncate(result.combined_output)
        if result.timed_out:
            return CommandResult(
                command_type=kind.value,
                summary=f"Command timed out ({self.command_timeout_seconds:g}s): {command.command}",
                success=False,
                output=output,
            )

        return CommandResult(
            command_type=kind.value,
            summary=f"Ran '{command.command}' (exit code {result.exit_code})",
            success=result.exit_code == 0,
            output=output,
        )

    def _message(self, command: MessageCommand) -> CommandResult:
        self.logger.info("agent.message", text=command.text)
        if self.on_message is not None:
            self.on_message(command.text)
        return _success(CommandType.MESSAGE, command.text)

    def _truncate(self, output: str) -> str:
        if len(output) <= self.max_output_length:
            return output
        return output[: self.max_output_length] + TRUNCATION_MARKER


def _split_lines(text: str) -> list[str]:
    """Split file text into lines, dropping the final terminator."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _type_name(command: object) -> str:
    command_type = getattr(command, "type", None)
    return command_type.value if isinstance(command_type, CommandType) else type(command).__name__


def _success(kind: CommandType, summary: str) -> CommandResult:
    return CommandResult(command_type=kind.value, summary=summary, success=True)


def _failure(kind: CommandType, summary: str) -> CommandResult:
    return CommandResult(command_type=kind.value, summary=summary, success=False)
