"""
Console output for the handoff CLI.

Renders orchestrator progress updates as plain, human-readable lines. Agent
text is escaped before printing so command tags like ``[DONE]`` are not
mistaken for rich markup.
"""

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from handoff.application.orchestrator import ProgressUpdate
from handoff.core.domain.session import Session


class HandoffConsole:
    """Rich console wrapper used by all CLI commands."""

    def __init__(self, debug: bool = False, console: Console | None = None):
        self.debug = debug
        self.console = console or Console(highlight=False)

    def print_banner(self) -> None:
        self.console.print("[bold blue]Handoff[/bold blue] - text file coding agent")

    def print_divider(self) -> None:
        self.console.rule(style="dim")

    def print_system_message(self, message: str, kind: str = "info") -> None:
        styles = {"info": "cyan", "success": "green", "warning": "yellow", "error": "red", "system": "blue"}
        self.console.print(f"[{styles.get(kind, 'white')}]{escape(message)}[/]")

    def print_success(self, message: str) -> None:
        self.print_system_message(message, "success")

    def print_warning(self, message: str) -> None:
        self.print_system_message(message, "warning")

    def print_error(self, message: str, exception: Exception | None = None) -> None:
        self.print_system_message(message, "error")
        if exception is not None and self.debug:
            self.console.print_exception()

    def print_debug(self, message: str) -> None:
        if self.debug:
            self.console.print(f"[dim]{escape(message)}[/dim]")

    def print_handoff_instructions(self, outbox_name: str) -> None:
        self.print_divider()
        self.console.print(f"Outbox file ready: [bold cyan]{escape(outbox_name)}[/bold cyan]")
        self.console.print("")
        self.console.print("1. Copy the contents of the outbox file")
        self.console.print("2. Paste into your LLM chat")
        self.console.print("3. Save the LLM response as a .txt file in the inbox/ folder")
        self.print_divider()

    def print_result(self, command_type: str, summary: str, success: bool, output: str = "") -> None:
        tag = "[green][OK][/green]" if success else "[red][FAIL][/red]"
        self.console.print(f"  {tag} {escape(command_type)}: {escape(summary)}")
        if output.strip() and self.debug:
            self.console.print(escape(output.rstrip()), style="dim")

    def print_agent_message(self, text: str) -> None:
        self.console.print(Panel(escape(text), title="Agent", border_style="magenta"))

    def handle_progress(self, update: ProgressUpdate) -> None:
        """Progress callback passed to the orchestrator."""
        details = update.details
        if update.event_type == "outbox_ready":
            self.print_handoff_instructions(Path(details.get("path", "")).name)
        elif update.event_type == "result":
            self.print_result(
                details.get("command_type", ""),
                details.get("summary", update.message),
                details.get("success", False),
                details.get("output", ""),
            )
        elif update.event_type == "message":
            self.print_agent_message(update.message)
        elif update.event_type == "complete":
            self.print_divider()
            self.print_success("Task complete!")
            if update.message:
                self.console.print(escape(update.message))
            self.print_divider()
        elif update.event_type in ("no_commands", "archive_failed"):
            self.print_warning(update.message)
        else:
            self.print_system_message(update.message)

    def print_sessions_table(self, sessions: list[Session]) -> None:
        table = Table(title="Sessions")
        table.add_column("Session ID", style="cyan", no_wrap=True)
        table.add_column("Seq", style="white", justify="right")
        table.add_column("Status", style="yellow", no_wrap=True)
        table.add_column("Updated", style="green")
        table.add_column("Task", style="white")

        for session in sessions:
            task = session.task if len(session.task) <= 50 else session.task[:47] + "..."
            table.add_row(
                session.session_id,
                str(session.sequence_number),
                "complete" if session.is_complete else "in progress",
                session.updated_at.strftime("%Y-%m-%d %H:%M:%S"),
                escape(task),
            )

        self.console.print(table)
