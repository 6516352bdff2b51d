"""
Configuration management for handoff.

Settings come from (lowest to highest precedence): field defaults,
``HANDOFF_*`` environment variables / ``.env``, a YAML file, and finally
command-line flags applied by the CLI.
"""

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings

from handoff.core.domain.errors import ConfigurationError

DEFAULT_CONFIG_FILE = "handoff.yaml"


class HandoffSettings(BaseSettings):
    """Handoff settings with environment variable support."""

    # Directory layout
    base_path: Path = Field(default=Path("."), description="Root for all relative directories")
    workspace_dir: str = Field(default="workspace", description="Sandboxed workspace directory")
    inbox_dir: str = Field(default="inbox", description="Directory replies are saved into")
    outbox_dir: str = Field(default="outbox", description="Directory outbox files are written to")
    sessions_dir: str = Field(default="sessions", description="Session record directory")
    processed_dir_name: str = Field(default="processed", description="Inbox archive subdirectory")

    # Command execution
    command_timeout_seconds: float = Field(default=30, gt=0, description="RUN_COMMAND timeout")
    max_output_length: int = Field(default=4000, gt=0, description="Captured output limit (chars)")

    # Inbox watching
    settle_delay_seconds: float = Field(default=0.5, ge=0, description="Delay after inbox changes")
    stability_retries: int = Field(default=5, ge=2, description="Reply stability check attempts")
    stability_retry_delay_seconds: float = Field(default=0.2, ge=0, description="Delay between checks")
    poll_interval_seconds: float = Field(default=2.0, gt=0, description="Fallback inbox poll interval")

    # Logging
    log_level: str = Field(default="WARNING", description="Logging level")

    model_config = {
        "env_file": ".env",
        "env_prefix": "HANDOFF_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def workspace_path(self) -> Path:
        return self.base_path / self.workspace_dir

    @property
    def inbox_path(self) -> Path:
        return self.base_path / self.inbox_dir

    @property
    def outbox_path(self) -> Path:
        return self.base_path / self.outbox_dir

    @property
    def sessions_path(self) -> Path:
        return self.base_path / self.sessions_dir

    @property
    def processed_path(self) -> Path:
        return self.inbox_path / self.processed_dir_name

    def ensure_directories(self) -> None:
        for path in (
            self.workspace_path,
            self.inbox_path,
            self.outbox_path,
            self.sessions_path,
            self.processed_path,
        ):
            path.mkdir(parents=True, exist_ok=True)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "HandoffSettings":
        """Load settings from a YAML configuration file (defaults if missing)."""
        if not config_path.exists():
            return cls()

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read config file '{config_path}': {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Config file '{config_path}' must contain a mapping")

        try:
            return cls(**config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings in '{config_path}': {e}") from e

    @classmethod
    def resolve(
        cls, config_file: Optional[Path] = None, base_path: Optional[Path] = None
    ) -> "HandoffSettings":
        """Load the effective settings for a CLI invocation.

        Args:
            config_file: Explicit YAML file; defaults to ``handoff.yaml`` in the base path
            base_path: Overrides ``base_path`` from file and environment
        """
        if config_file is not None and not config_file.exists():
            raise ConfigurationError(f"Config file '{config_file}' does not exist")

        config_path = config_file or (base_path or Path(".")) / DEFAULT_CONFIG_FILE
        settings = cls.load_from_file(config_path)
        if base_path is not None:
            settings = settings.model_copy(update={"base_path": base_path})
        return settings

    def save_to_file(self, config_path: Path) -> None:
        """Save settings to a YAML configuration file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        config_data = self.model_dump(mode="json")
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(config_data, f, default_flow_style=False, indent=2, sort_keys=False)

    def as_display_dict(self) -> dict[str, Any]:
        """Settings plus derived paths, for display."""
        data = self.model_dump(mode="json")
        data.update(
            {
                "workspace_path": str(self.workspace_path),
                "inbox_path": str(self.inbox_path),
                "outbox_path": str(self.outbox_path),
                "sessions_path": str(self.sessions_path),
                "processed_path": str(self.processed_path),
            }
        )
        return data
