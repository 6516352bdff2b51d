"""
Shell Runner

Runs one shell command per call in the workspace directory, capturing stdout
and stderr. Each command gets its own process group (POSIX) or process group
flag (Windows) so the whole tree can be killed on timeout. No descendant is
left running once ``run`` returns.
"""

import asyncio
import os
import signal
import subprocess
from dataclasses import dataclass
from pathlib import Path

import structlog

logger = structlog.get_logger()

IS_WINDOWS = os.name == "nt"


@dataclass
class ShellResult:
    """Raw result of a shell invocation.

    Attributes:
        exit_code: Process return code (None when killed on timeout)
        stdout: Decoded standard output captured so far
        stderr: Decoded standard error captured so far
        timed_out: True if the wall-clock timeout expired
    """

    exit_code: int | None
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def combined_output(self) -> str:
        output = self.stdout
        if self.stderr.strip():
            output += ("\n" if output.strip() else "") + self.stderr
        return output


class ShellRunner:
    """Spawns platform-default shell processes with a timeout."""

    # How long to keep draining pipes after the process tree was killed
    DRAIN_TIMEOUT_SECONDS = 5.0

    def __init__(self):
        self.logger = logger.bind(component="shell_runner")

    async def run(self, command: str, cwd: Path, timeout: float) -> ShellResult:
        """Run a shell command and wait for it (and its descendants) to finish.

        Args:
            command: Command line passed to the platform shell
            cwd: Working directory for the process
            timeout: Wall-clock limit in seconds

        Returns:
            ShellResult with captured output; ``timed_out`` set on expiry

        Raises:
            OSError: If the shell cannot be spawned
        """
        process = await self._spawn(command, cwd)
        self.logger.debug("shell.started", command=command, pid=process.pid)

        stdout_chunks: list[bytes] = []
        stderr_chunks: list[bytes] = []
        readers = [
            asyncio.create_task(_drain(process.stdout, stdout_chunks)),
            asyncio.create_task(_drain(process.stderr, stderr_chunks)),
        ]

        timed_out = False
        try:
            await asyncio.wait_for(process.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            timed_out = True
            self.logger.warning("shell.timed_out", command=command, timeout=timeout)
        except asyncio.CancelledError:
            for reader in readers:
                reader.cancel()
            raise
        finally:
            # Also reaps background children left behind by a finished shell
            await self._kill_tree(process)

        _, pending = await asyncio.wait(readers, timeout=self.DRAIN_TIMEOUT_SECONDS)
        for reader in pending:
            reader.cancel()

        return ShellResult(
            exit_code=None if timed_out else process.returncode,
            stdout=_decode(stdout_chunks),
            stderr=_decode(stderr_chunks),
            timed_out=timed_out,
        )

    async def _spawn(self, command: str, cwd: Path) -> asyncio.subprocess.Process:
        if IS_WINDOWS:
            return await asyncio.create_subprocess_shell(
                command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd),
                creationflags=subprocess.CREATE_NEW_PROCESS_GROUP,
            )
        return await asyncio.create_subprocess_shell(
            command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd),
            start_new_session=True,
        )

    async def _kill_tree(self, process: asyncio.subprocess.Process) -> None:
        """Kill the process and every descendant, then reap the process."""
        if IS_WINDOWS:
            if process.returncode is None:
                killer = await asyncio.create_subprocess_exec(
                    "taskkill", "/F", "/T", "/PID", str(process.pid),
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.DEVNULL,
                )
                await killer.wait()
        else:
            try:
                # start_new_session makes the shell a group leader: pgid == pid
                os.killpg(process.pid, signal.SIGKILL)
            except (ProcessLookupError, PermissionError):
                pass

        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()


async def _drain(stream: asyncio.StreamReader | None, sink: list[bytes]) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(65536)
        if not chunk:
            return
        sink.append(chunk)


def _decode(chunks: list[bytes]) -> str:
    return b"".join(chunks).decode("utf-8", errors="replace")
