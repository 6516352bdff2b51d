"""Workspace root management and path validation.

Every file-touching command resolves its path through WorkspaceSandbox so
that nothing outside the workspace root can be read or modified, whatever
separator style or traversal sequence the agent used.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import structlog

from handoff.core.domain.errors import SandboxViolationError

logger = structlog.get_logger()


@dataclass(frozen=True)
class WorkspaceFile:
    relative_path: str
    size: int


class WorkspaceSandbox:
    """Resolves agent-supplied relative paths inside a fixed root directory."""

    def __init__(self, root: str | Path):
        self._root = Path(root).resolve()
        self.logger = logger.bind(component="workspace_sandbox")

    @property
    def root(self) -> Path:
        return self._root

    def ensure_exists(self) -> None:
        self._root.mkdir(parents=True, exist_ok=True)

    def resolve(self, relative_path: str) -> Path:
        """Resolve a workspace-relative path to a canonical absolute path.

        Args:
            relative_path: Path as written by the agent (``/`` or ``\\`` separators)

        Returns:
            Canonical path equal to or inside the workspace root

        Raises:
            SandboxViolationError: If the canonical path escapes the root
        """
        normalized = relative_path.replace("\\", os.sep).replace("/", os.sep)
        candidate = (self._root / normalized).resolve()

        if candidate != self._root and self._root not in candidate.parents:
            self.logger.warning("path.rejected", path=relative_path, resolved=str(candidate))
            raise SandboxViolationError(relative_path)

        return candidate

    def list_files(self) -> list[WorkspaceFile]:
        """All files under the root, recursively, sorted by relative path."""
        if not self._root.is_dir():
            return []

        files: list[WorkspaceFile] = []
        for path in self._root.rglob("*"):
            try:
                if not path.is_file():
                    continue
                size = path.stat().st_size
            except OSError:
                # Vanished or unreadable between listing and stat
                continue
            files.append(WorkspaceFile(path.relative_to(self._root).as_posix(), size))

        return sorted(files, key=lambda f: f.relative_path)
