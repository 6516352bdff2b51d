"""Config command - Show and initialise configuration."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from handoff.api.cli.context import load_settings
from handoff.api.cli.output_formatter import HandoffConsole
from handoff.config.settings import DEFAULT_CONFIG_FILE, HandoffSettings

app = typer.Typer(help="Configuration management")


@app.command("show")
def show_config(ctx: typer.Context):
    """Show the effective configuration."""
    settings = load_settings(ctx)
    console = HandoffConsole()

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")

    for key, value in settings.as_display_dict().items():
        table.add_row(key, str(value))

    console.console.print(table)


@app.command("init")
def init_config(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(None, help="Where to write the config file"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
):
    """Write a config file populated with the default settings."""
    global_opts = ctx.obj or {}
    base_path = global_opts.get("base_path") or Path(".")
    target = path or base_path / DEFAULT_CONFIG_FILE
    console = HandoffConsole()

    if target.exists() and not force:
        console.print_error(f"{target} already exists (use --force to overwrite)")
        raise typer.Exit(1)

    HandoffSettings().save_to_file(target)
    console.print_success(f"Wrote {target}")
