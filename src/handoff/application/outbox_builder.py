"""
Outbox Builder

Renders the message the operator pastes into the external agent. The
document has four sections delimited by fixed marker lines:

    === HEADER ===     session id, sequence number, task
    === PROTOCOL ===   command reference, identical every cycle
    === CONTEXT ===    workspace listing, previous results, requested files
    === PROMPT ===     the task (first cycle) or a continuation instruction
"""

from handoff.core.domain.errors import SandboxViolationError
from handoff.core.domain.models import CommandResult
from handoff.core.domain.session import Session
from handoff.core.prompts.protocol_prompt import (
    CONTINUATION_PROMPT,
    EMPTY_WORKSPACE_MARKER,
    PROTOCOL_INSTRUCTIONS,
    SECTION_CONTEXT,
    SECTION_HEADER,
    SECTION_PROMPT,
    SECTION_PROTOCOL,
)
from handoff.infrastructure.sandbox.workspace import WorkspaceSandbox


class OutboxBuilder:
    """Builds outbox text from a session and the current workspace.

    ``build`` does not modify the session; once the outbox is written the
    caller clears the delivered read requests.
    """

    def __init__(self, sandbox: WorkspaceSandbox, instructions: str = PROTOCOL_INSTRUCTIONS):
        self.sandbox = sandbox
        self.instructions = instructions

    def build(self, session: Session) -> str:
        parts = [
            self._header(session),
            f"{SECTION_PROTOCOL}\n{self.instructions}\n",
            self._context(session),
            self._prompt(session),
        ]
        return "\n".join(parts)

    def _header(self, session: Session) -> str:
        return (
            f"{SECTION_HEADER}\n"
            f"Session: {session.session_id}\n"
            f"Sequence: {session.sequence_number}\n"
            f"Task: {session.task}\n"
        )

    def _context(self, session: Session) -> str:
        lines = [SECTION_CONTEXT, "## Workspace Files"]

        files = self.sandbox.list_files()
        if not files:
            lines.append(EMPTY_WORKSPACE_MARKER)
        for entry in files:
            lines.append(f"  {entry.relative_path} ({entry.size} bytes)")
        lines.append("")

        if session.last_results:
            lines.append("## Previous Command Results")
            for result in session.last_results:
                lines.extend(_render_result(result))
            lines.append("")

        if session.read_file_requests:
            lines.append("## Requested File Contents")
            for path in session.read_file_requests:
                lines.extend(self._render_requested_file(path))
            lines.append("")

        return "\n".join(lines) + "\n"

    def _render_requested_file(self, path: str) -> list[str]:
        try:
            target = self.sandbox.resolve(path)
            content = target.read_text(encoding="utf-8", errors="replace")
        except (SandboxViolationError, OSError):
            return [f"--- {path} --- (file not found or access denied)"]

        return [f"--- {path} ---", content.rstrip("\n"), f"--- end {path} ---"]

    def _prompt(self, session: Session) -> str:
        body = session.task if session.sequence_number == 1 else CONTINUATION_PROMPT
        return f"{SECTION_PROMPT}\n{body}\n"


def _render_result(result: CommandResult) -> list[str]:
    status = "OK" if result.success else "FAILED"
    lines = [f"[{status}] {result.command_type}: {result.summary}"]
    if result.output.strip():
        lines.append("  Output:")
        lines.extend(f"    {line}" for line in result.output.rstrip("\n").split("\n"))
    return lines
