"""
Inbox Watcher

Waits for the agent's reply to appear in the inbox directory. A watchdog
observer provides change notifications; the inbox is re-scanned immediately
before and after subscribing so a file dropped in between is not missed, and
a poll interval acts as a fallback when notifications are lost or the
platform has no observer available.

Candidate files must pass a stability check before they are handed out, so a
reply that an editor is still writing is not read half-finished.
"""

import asyncio
from pathlib import Path

import structlog
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = structlog.get_logger()

REPLY_SUFFIX = ".txt"


class _InboxEventHandler(FileSystemEventHandler):
    """Forwards watchdog events (observer thread) to an asyncio.Event."""

    def __init__(self, loop: asyncio.AbstractEventLoop, changed: asyncio.Event):
        self._loop = loop
        self._changed = changed

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._loop.call_soon_threadsafe(self._changed.set)


class InboxWatcher:
    """
    Delivers the oldest stable ``.txt`` file placed directly in the inbox.

    Args:
        inbox_path: Directory the operator saves replies into
        settle_delay: Pause after a change before re-scanning (seconds)
        stability_retries: Attempts at the stability check before giving up for now
        stability_retry_delay: Pause between stability attempts (seconds)
        poll_interval: Maximum time between scans without a notification (seconds)
    """

    OBSERVER_JOIN_TIMEOUT_SECONDS = 2.0

    def __init__(
        self,
        inbox_path: str | Path,
        settle_delay: float = 0.5,
        stability_retries: int = 5,
        stability_retry_delay: float = 0.2,
        poll_interval: float = 2.0,
    ):
        self.inbox_path = Path(inbox_path)
        self.settle_delay = settle_delay
        self.stability_retries = stability_retries
        self.stability_retry_delay = stability_retry_delay
        self.poll_interval = poll_interval
        self.logger = logger.bind(component="inbox_watcher")

    async def wait_for_reply(self) -> Path:
        """Block until a stable reply file exists and return its path."""
        self.inbox_path.mkdir(parents=True, exist_ok=True)

        ready = await self._find_ready()
        if ready is not None:
            return ready

        changed = asyncio.Event()
        observer = self._start_observer(asyncio.get_running_loop(), changed)
        try:
            # A reply may have landed between the first scan and subscribing
            ready = await self._find_ready()
            while ready is None:
                try:
                    await asyncio.wait_for(changed.wait(), timeout=self.poll_interval)
                except asyncio.TimeoutError:
                    pass
                changed.clear()
                await asyncio.sleep(self.settle_delay)
                ready = await self._find_ready()
            return ready
        finally:
            if observer is not None:
                observer.stop()
                await asyncio.to_thread(observer.join, self.OBSERVER_JOIN_TIMEOUT_SECONDS)

    def find_oldest(self) -> Path | None:
        """Oldest ``.txt`` file (by modification time) directly in the inbox."""
        if not self.inbox_path.is_dir():
            return None

        candidates = []
        for path in self.inbox_path.iterdir():
            if path.suffix.lower() != REPLY_SUFFIX:
                continue
            try:
                if not path.is_file():
                    continue
                candidates.append((path.stat().st_mtime, path.name, path))
            except OSError:
                continue

        if not candidates:
            return None
        candidates.sort(key=lambda item: (item[0], item[1]))
        return candidates[0][2]

    async def is_stable(self, path: Path) -> bool:
        """
        Check that nobody is still writing the file.

        The file must open for reading and report the same size on two
        consecutive attempts. Gives up after ``stability_retries`` attempts.
        """
        previous_size = None
        for _ in range(max(self.stability_retries, 2)):
            try:
                with open(path, "rb"):
                    size = path.stat().st_size
            except OSError:
                previous_size = None
            else:
                if size == previous_size:
                    return True
                previous_size = size
            await asyncio.sleep(self.stability_retry_delay)
        return False

    async def _find_ready(self) -> Path | None:
        candidate = self.find_oldest()
        if candidate is None:
            return None
        if await self.is_stable(candidate):
            self.logger.debug("inbox.reply_ready", file=candidate.name)
            return candidate
        self.logger.debug("inbox.reply_unstable", file=candidate.name)
        return None

    def _start_observer(self, loop: asyncio.AbstractEventLoop, changed: asyncio.Event):
        observer = Observer()
        observer.schedule(_InboxEventHandler(loop, changed), str(self.inbox_path), recursive=False)
        try:
            observer.start()
        except OSError as e:
            # e.g. inotify watch limit reached; the poll interval still applies
            self.logger.warning("inbox.observer_unavailable", error=str(e))
            return None
        return observer
