"""
Application Layer - Orchestrator

Drives the request/response cycle between the engine and the external
agent:

    write outbox -> wait for reply -> parse -> execute -> persist -> archive

The loop is strictly sequential; one cycle runs at a time and commands from a
reply execute in order. Command-level failures never stop the loop - they are
reported back to the agent. Only a session persistence failure (or an
operator interrupt) halts it.
"""

import asyncio
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import structlog

from handoff.application.outbox_builder import OutboxBuilder
from handoff.core.domain.command_parser import parse
from handoff.core.domain.commands import Command
from handoff.core.domain.errors import SessionNotFoundError
from handoff.core.domain.session import (
    CycleState,
    Session,
    advance_sequence,
    apply_outcome,
    clear_read_requests,
    new_session,
)
from handoff.core.interfaces.execution import CommandExecutorProtocol, ReplySourceProtocol
from handoff.core.interfaces.state import SessionStoreProtocol
from handoff.infrastructure.persistence.atomic import atomic_write_text

logger = structlog.get_logger()


@dataclass
class ProgressUpdate:
    """Progress update for the operator.

    Attributes:
        timestamp: When this update occurred
        event_type: started, resumed, outbox_ready, waiting, reply_received,
            no_commands, result, message, archive_failed, complete
        message: Human-readable message describing the event
        details: Additional structured data about the event
    """

    timestamp: datetime
    event_type: str
    message: str
    details: dict = field(default_factory=dict)


class Orchestrator:
    """Runs the outbox/inbox cycle for one session at a time.

    Args:
        store: Session persistence
        builder: Outbox renderer
        executor: Sandboxed command executor
        reply_source: Blocks until a reply file is available
        outbox_path: Directory outbox files are written to
        processed_path: Archive directory for consumed replies
        progress_callback: Optional sink for operator-facing progress lines
        parser: Reply text to commands (defaults to the tag grammar parser)
    """

    REPLY_RETRY_DELAY_SECONDS = 0.5

    def __init__(
        self,
        store: SessionStoreProtocol,
        builder: OutboxBuilder,
        executor: CommandExecutorProtocol,
        reply_source: ReplySourceProtocol,
        outbox_path: Path,
        processed_path: Path,
        progress_callback: Optional[Callable[[ProgressUpdate], None]] = None,
        parser: Callable[[str], list[Command]] = parse,
    ):
        self.store = store
        self.builder = builder
        self.executor = executor
        self.reply_source = reply_source
        self.outbox_path = Path(outbox_path)
        self.processed_path = Path(processed_path)
        self.progress_callback = progress_callback
        self.parser = parser
        self.state = CycleState.AWAITING_FIRST_REQUEST
        self.logger = logger.bind(component="orchestrator")

    async def start(self, task: str) -> Session:
        """Create and persist a fresh session for ``task``."""
        session = new_session(task)
        await self.store.save(session)
        self.state = session.state

        self.logger.info("session.started", session_id=session.session_id, task=task[:100])
        self._emit("started", f"New session: {session.session_id}", session_id=session.session_id)
        return session

    async def resume(self) -> Session:
        """
        Load the most recently updated incomplete session.

        Raises:
            SessionNotFoundError: If every session is complete or none exist
        """
        session = await self.store.load_latest()
        if session is None:
            self.logger.warning("session.resume_unavailable")
            raise SessionNotFoundError("No incomplete session found to resume")

        self.state = session.state
        self.logger.info(
            "session.resumed", session_id=session.session_id, sequence=session.sequence_number
        )
        self._emit(
            "resumed",
            f"Resumed session: {session.session_id} (seq {session.sequence_number})",
            session_id=session.session_id,
            sequence=session.sequence_number,
        )
        return session

    async def run(self, session: Session) -> Session:
        """Run cycles until the session is complete.

        Raises:
            SessionPersistenceError: If session state cannot be saved
        """
        while not session.is_complete:
            session = await self.run_cycle(session)
        self.state = CycleState.COMPLETE
        return session

    async def run_cycle(self, session: Session) -> Session:
        """Run exactly one outbox -> reply -> execute cycle."""
        session = advance_sequence(session)

        outbox_file = self.write_outbox(session)
        session = clear_read_requests(session)
        await self.store.save(session)

        self.state = CycleState.AWAITING_REPLY
        self._emit(
            "outbox_ready",
            f"Outbox file ready: {outbox_file.name}",
            path=str(outbox_file),
            sequence=session.sequence_number,
        )
        self._emit("waiting", "Waiting for inbox response... (Ctrl+C to exit)")

        reply_file, text = await self._receive_reply()

        self.state = CycleState.PROCESSING
        self._emit("reply_received", f"Processing: {reply_file.name}", path=str(reply_file))

        commands = self.parser(text)
        if not commands:
            self.logger.warning("reply.no_commands", file=reply_file.name)
            self._emit(
                "no_commands",
                "No commands found in response. The file may not contain valid command blocks.",
            )

        outcome = await self.executor.execute(commands)
        for result in outcome.results:
            self._emit(
                "result",
                f"{result.command_type}: {result.summary}",
                success=result.success,
                command_type=result.command_type,
                summary=result.summary,
                output=result.output,
            )

        session = apply_outcome(session, outcome)
        if outcome.task_complete:
            self.logger.info("session.completed", session_id=session.session_id)
            self._emit("complete", outcome.done_message or "Task complete!", session_id=session.session_id)

        await self.store.save(session)
        self.archive_reply(reply_file)

        self.state = CycleState.COMPLETE if session.is_complete else CycleState.AWAITING_REPLY
        return session

    def write_outbox(self, session: Session) -> Path:
        """Write this cycle's outbox unless one with the same name exists."""
        self.outbox_path.mkdir(parents=True, exist_ok=True)
        outbox_file = self.outbox_path / session.outbox_file_name

        if outbox_file.exists():
            self.logger.info("outbox.exists", file=outbox_file.name)
            return outbox_file

        atomic_write_text(outbox_file, self.builder.build(session))
        self.logger.info("outbox.written", file=outbox_file.name, sequence=session.sequence_number)
        return outbox_file

    def archive_reply(self, reply_file: Path) -> None:
        """Move a consumed reply into the archive; failures are not fatal."""
        try:
            self.processed_path.mkdir(parents=True, exist_ok=True)
            target = self.processed_path / reply_file.name
            if target.exists():
                target.unlink()
            shutil.move(str(reply_file), str(target))
        except OSError as e:
            self.logger.warning("reply.archive_failed", file=reply_file.name, error=str(e))
            self._emit(
                "archive_failed",
                f"Could not archive {reply_file.name}: {e}. "
                "It is still in the inbox and will be processed again; move or delete it.",
                path=str(reply_file),
            )
            return
        self.logger.debug("reply.archived", file=reply_file.name)

    async def _receive_reply(self) -> tuple[Path, str]:
        while True:
            reply_file = await self.reply_source.wait_for_reply()
            try:
                return reply_file, reply_file.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                # Vanished or locked after passing the stability check; wait again
                self.logger.warning("reply.read_failed", file=reply_file.name, error=str(e))
                await asyncio.sleep(self.REPLY_RETRY_DELAY_SECONDS)

    def _emit(self, event_type: str, message: str, **details) -> None:
        if self.progress_callback is None:
            return
        self.progress_callback(
            ProgressUpdate(
                timestamp=datetime.now(), event_type=event_type, message=message, details=details
            )
        )
