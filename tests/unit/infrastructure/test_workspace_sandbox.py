"""Unit tests for WorkspaceSandbox path validation and listing."""

import os

import pytest

from handoff.core.domain.errors import SandboxViolationError
from handoff.infrastructure.sandbox.workspace import WorkspaceFile, WorkspaceSandbox


@pytest.fixture
def sandbox(tmp_path):
    root = tmp_path / "workspace"
    root.mkdir()
    return WorkspaceSandbox(root)


class TestResolve:
    def test_relative_path_inside_root(self, sandbox):
        assert sandbox.resolve("src/app.py") == sandbox.root / "src" / "app.py"

    def test_backslash_separators_are_normalized(self, sandbox):
        assert sandbox.resolve("src\\pkg\\mod.py") == sandbox.root / "src" / "pkg" / "mod.py"

    def test_root_itself_is_allowed(self, sandbox):
        assert sandbox.resolve(".") == sandbox.root

    def test_inner_traversal_that_stays_inside_is_allowed(self, sandbox):
        assert sandbox.resolve("a/../b.txt") == sandbox.root / "b.txt"

    @pytest.mark.parametrize("path", ["../escape.txt", "a/../../escape.txt", "..\\..\\escape.txt"])
    def test_traversal_is_rejected(self, sandbox, path):
        with pytest.raises(SandboxViolationError, match="outside workspace"):
            sandbox.resolve(path)

    def test_absolute_path_is_rejected(self, sandbox, tmp_path):
        with pytest.raises(SandboxViolationError):
            sandbox.resolve(str(tmp_path / "elsewhere.txt"))

    def test_sibling_with_common_prefix_is_rejected(self, sandbox, tmp_path):
        (tmp_path / "workspace2").mkdir()
        with pytest.raises(SandboxViolationError):
            sandbox.resolve("../workspace2/file.txt")

    @pytest.mark.skipif(os.name == "nt", reason="symlinks need privileges on Windows")
    def test_symlink_escape_is_rejected(self, sandbox, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (sandbox.root / "link").symlink_to(outside)

        with pytest.raises(SandboxViolationError):
            sandbox.resolve("link/secret.txt")


class TestListFiles:
    def test_empty_workspace(self, sandbox):
        assert sandbox.list_files() == []

    def test_missing_root(self, tmp_path):
        assert WorkspaceSandbox(tmp_path / "nope").list_files() == []

    def test_recursive_sorted_with_sizes(self, sandbox):
        (sandbox.root / "src").mkdir()
        (sandbox.root / "src" / "main.py").write_bytes(b"print(1)\n")
        (sandbox.root / "README.md").write_bytes(b"hi")
        (sandbox.root / "empty_dir").mkdir()

        assert sandbox.list_files() == [
            WorkspaceFile("README.md", 2),
            WorkspaceFile("src/main.py", 9),
        ]
