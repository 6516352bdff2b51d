"""Run commands - start a new session or resume the latest one."""

import asyncio
from typing import List

import typer

from handoff.api.cli.context import load_settings
from handoff.api.cli.output_formatter import HandoffConsole
from handoff.application.factory import HandoffFactory
from handoff.core.domain.errors import SessionNotFoundError, SessionPersistenceError

INTERRUPTED_EXIT_CODE = 130


def new_session(
    ctx: typer.Context,
    task: List[str] = typer.Argument(..., help="Task description for the agent"),
):
    """Start a new session for TASK.

    Examples:
        handoff new "Create a hello world Python script"

        handoff --base-path ./demo new Add unit tests for calc.py
    """
    task_text = " ".join(task).strip()
    if not task_text:
        typer.secho("Task description must not be empty", fg=typer.colors.RED, err=True)
        raise typer.Exit(2)

    settings = load_settings(ctx)
    console = HandoffConsole(debug=(ctx.obj or {}).get("debug", False))
    console.print_banner()
    console.print_system_message(f"Task: {task_text}", "system")
    console.print_debug(f"Workspace: {settings.workspace_path}")

    orchestrator = HandoffFactory(settings).create_orchestrator(
        progress_callback=console.handle_progress
    )

    async def _run():
        session = await orchestrator.start(task_text)
        return await orchestrator.run(session)

    _run_until_done(console, _run)


def resume_session(ctx: typer.Context):
    """Resume the most recently updated incomplete session."""
    settings = load_settings(ctx)
    console = HandoffConsole(debug=(ctx.obj or {}).get("debug", False))
    console.print_banner()

    orchestrator = HandoffFactory(settings).create_orchestrator(
        progress_callback=console.handle_progress
    )

    async def _run():
        session = await orchestrator.resume()
        console.print_system_message(f"Task: {session.task}", "system")
        return await orchestrator.run(session)

    _run_until_done(console, _run)


def _run_until_done(console: HandoffConsole, runner) -> None:
    try:
        session = asyncio.run(runner())
    except KeyboardInterrupt:
        console.print_warning("Interrupted. Session saved; run 'handoff resume' to continue.")
        raise typer.Exit(INTERRUPTED_EXIT_CODE)
    except SessionNotFoundError as e:
        console.print_error(str(e))
        raise typer.Exit(1)
    except SessionPersistenceError as e:
        console.print_error(str(e), exception=e)
        raise typer.Exit(1)

    console.print_debug(f"Session ID: {session.session_id}")
