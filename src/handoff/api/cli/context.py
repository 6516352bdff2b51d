"""Shared helpers for CLI commands: settings resolution and logging setup."""

import logging

import structlog
import typer

from handoff.config.settings import HandoffSettings
from handoff.core.domain.errors import ConfigurationError


def configure_logging(debug: bool, log_level: str = "WARNING") -> None:
    """Route structlog through a level filter.

    Without --debug the configured level applies (WARNING by default), so
    the console stays readable for the copy/paste workflow.
    """
    level = logging.DEBUG if debug else _parse_level(log_level)

    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


def _parse_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.WARNING


def load_settings(ctx: typer.Context) -> HandoffSettings:
    """Resolve settings from the global CLI options stored on the context."""
    global_opts = ctx.obj or {}
    try:
        settings = HandoffSettings.resolve(
            config_file=global_opts.get("config"), base_path=global_opts.get("base_path")
        )
    except ConfigurationError as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(2)

    configure_logging(global_opts.get("debug", False), settings.log_level)
    return settings
