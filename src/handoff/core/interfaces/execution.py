"""Protocols for command execution and reply delivery."""

from pathlib import Path
from typing import Protocol, Sequence

from handoff.core.domain.commands import Command
from handoff.core.domain.models import ExecutionOutcome


class CommandExecutorProtocol(Protocol):
    async def execute(self, commands: Sequence[Command]) -> ExecutionOutcome:
        """Run commands in order. Never raises for command-level failures."""
        ...


class ReplySourceProtocol(Protocol):
    async def wait_for_reply(self) -> Path:
        """Block until a stable reply file is available and return its path."""
        ...
