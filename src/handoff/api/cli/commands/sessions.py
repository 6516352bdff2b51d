"""Sessions command - Inspect stored sessions."""

import asyncio

import typer

from handoff.api.cli.context import load_settings
from handoff.api.cli.output_formatter import HandoffConsole
from handoff.application.factory import HandoffFactory

app = typer.Typer(help="Session management")


@app.command("list")
def list_sessions(ctx: typer.Context):
    """List all stored sessions, newest first."""
    settings = load_settings(ctx)
    console = HandoffConsole()

    store = HandoffFactory(settings).create_session_store()
    sessions = asyncio.run(store.list_sessions())

    if not sessions:
        console.print_system_message("No sessions found")
        return

    console.print_sessions_table(sessions)


@app.command("show")
def show_session(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Session ID"),
):
    """Show session details."""
    settings = load_settings(ctx)
    console = HandoffConsole()

    store = HandoffFactory(settings).create_session_store()
    session = asyncio.run(store.load(session_id))

    if session is None:
        console.print_error(f"Session '{session_id}' not found")
        raise typer.Exit(1)

    console.console.print(f"\n[bold]Session:[/bold] {session.session_id}")
    console.console.print(f"[bold]Sequence:[/bold] {session.sequence_number}")
    console.console.print(
        f"[bold]Status:[/bold] {'complete' if session.is_complete else 'in progress'}"
    )
    console.console.print_json(data=session.model_dump(mode="json", by_alias=True))
