"""
Handoff Factory - Dependency Injection

Wires the protocol engine from resolved settings:
- FileSessionStore for session records
- WorkspaceSandbox + SandboxedExecutor for command execution
- InboxWatcher for reply delivery
- OutboxBuilder with the protocol instructions
"""

from datetime import datetime
from typing import Callable, Optional

import structlog

from handoff.application.orchestrator import Orchestrator, ProgressUpdate
from handoff.application.outbox_builder import OutboxBuilder
from handoff.config.settings import HandoffSettings
from handoff.core.prompts.protocol_prompt import PROTOCOL_INSTRUCTIONS
from handoff.infrastructure.inbox.watcher import InboxWatcher
from handoff.infrastructure.persistence.file_session_store import FileSessionStore
from handoff.infrastructure.sandbox.executor import SandboxedExecutor
from handoff.infrastructure.sandbox.workspace import WorkspaceSandbox

logger = structlog.get_logger()


class HandoffFactory:
    """Creates engine components from a HandoffSettings instance."""

    def __init__(self, settings: Optional[HandoffSettings] = None):
        self.settings = settings or HandoffSettings()
        self.logger = logger.bind(component="handoff_factory")

    def create_session_store(self) -> FileSessionStore:
        return FileSessionStore(self.settings.sessions_path)

    def create_sandbox(self) -> WorkspaceSandbox:
        return WorkspaceSandbox(self.settings.workspace_path)

    def create_executor(
        self, sandbox: WorkspaceSandbox, on_message: Optional[Callable[[str], None]] = None
    ) -> SandboxedExecutor:
        return SandboxedExecutor(
            sandbox=sandbox,
            command_timeout_seconds=self.settings.command_timeout_seconds,
            max_output_length=self.settings.max_output_length,
            on_message=on_message,
        )

    def create_inbox_watcher(self) -> InboxWatcher:
        return InboxWatcher(
            inbox_path=self.settings.inbox_path,
            settle_delay=self.settings.settle_delay_seconds,
            stability_retries=self.settings.stability_retries,
            stability_retry_delay=self.settings.stability_retry_delay_seconds,
            poll_interval=self.settings.poll_interval_seconds,
        )

    def create_orchestrator(
        self, progress_callback: Optional[Callable[[ProgressUpdate], None]] = None
    ) -> Orchestrator:
        """Create a fully wired orchestrator.

        Args:
            progress_callback: Receives operator-facing progress updates,
                including MESSAGE text from the agent

        Returns:
            Orchestrator ready to start or resume a session
        """
        self.settings.ensure_directories()

        def on_message(text: str) -> None:
            if progress_callback is not None:
                progress_callback(
                    ProgressUpdate(timestamp=datetime.now(), event_type="message", message=text)
                )

        sandbox = self.create_sandbox()
        orchestrator = Orchestrator(
            store=self.create_session_store(),
            builder=OutboxBuilder(sandbox, instructions=PROTOCOL_INSTRUCTIONS),
            executor=self.create_executor(sandbox, on_message=on_message),
            reply_source=self.create_inbox_watcher(),
            outbox_path=self.settings.outbox_path,
            processed_path=self.settings.processed_path,
            progress_callback=progress_callback,
        )

        self.logger.debug(
            "orchestrator.created",
            workspace=str(sandbox.root),
            inbox=str(self.settings.inbox_path),
            outbox=str(self.settings.outbox_path),
        )
        return orchestrator
