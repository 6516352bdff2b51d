"""Handoff CLI entry point."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from handoff.api.cli.commands import config, run, sessions

app = typer.Typer(
    name="handoff",
    help="Handoff - text file coding agent driven through copy/paste",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

# Register commands
app.command("new")(run.new_session)
app.command("resume")(run.resume_session)
app.add_typer(sessions.app, name="sessions", help="Session management")
app.add_typer(config.app, name="config", help="Configuration management")


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML config file (default: handoff.yaml in the base path)"
    ),
    base_path: Optional[Path] = typer.Option(
        None, "--base-path", "-b", help="Root for workspace/, inbox/, outbox/ and sessions/"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug output"),
):
    """Handoff CLI."""
    # Store global options in context for subcommands
    ctx.obj = {"config": config_file, "base_path": base_path, "debug": debug}


@app.command()
def version():
    """Show Handoff version."""
    from handoff import __version__

    console.print(f"[bold blue]Handoff[/bold blue] version [cyan]{__version__}[/cyan]")


if __name__ == "__main__":
    app()
