"""
Progress accounting and console display for archive runs.

The pipeline only ever talks to a ProgressTracker. Anything that wants to show
progress (the console spinner, a test, a log line) reads the tracker or
subscribes a callback, so the core has no console dependency.
"""

import asyncio
import sys
from typing import Callable, List, Optional, TextIO
from colored_logger import get_colored_logger

logger = get_colored_logger(__name__)

ProgressCallback = Callable[[int, int], None]

SPINNER_FRAMES = ["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"]


class ProgressTracker:
    """Monotonic processed-file counter for one run."""

    def __init__(self, callbacks: Optional[List[ProgressCallback]] = None):
        self.files_processed = 0
        self.total_files = 0
        self._callbacks: List[ProgressCallback] = list(callbacks or [])

    def subscribe(self, callback: ProgressCallback) -> None:
        self._callbacks.append(callback)

    def start(self, total_files: int) -> None:
        """Begin counting for a new attempt."""
        self.total_files = total_files
        self.files_processed = 0
        self._notify()

    def advance(self, count: int = 1) -> None:
        if count <= 0:
            return
        self.files_processed = min(self.files_processed + count, self.total_files)
        self._notify()

    @property
    def percentage(self) -> int:
        if self.total_files <= 0:
            return 0
        return round(self.files_processed / self.total_files * 100)

    def _notify(self) -> None:
        for callback in self._callbacks:
            callback(self.files_processed, self.total_files)


def log_progress(current: int, total: int) -> None:
    """Progress callback that writes a PROGRESS log line every ~5%."""
    if total <= 0 or current <= 0:
        return
    if current == 1 or current % max(1, total // 20) == 0 or current == total:
        logger.progress(
            "Archiving progress: %d/%d files (%.1f%%)",
            current,
            total,
            current / total * 100,
        )


class ConsoleProgressDisplay:
    """Spinner line redrawn on a fixed interval from a background task.

    The task must be stopped explicitly; stop() is safe to call more than once
    and is meant to run in a finally block.
    """

    def __init__(
        self,
        tracker: ProgressTracker,
        message: str = "Compressing files",
        interval: float = 0.1,
        stream: Optional[TextIO] = None,
    ):
        self.tracker = tracker
        self.message = message
        self.interval = max(0.01, interval)
        self.stream = stream or sys.stdout
        self._task: Optional[asyncio.Task] = None
        self._frame = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def render_frame(self) -> str:
        frame = SPINNER_FRAMES[self._frame]
        self._frame = (self._frame + 1) % len(SPINNER_FRAMES)
        return (
            f"\r{frame} {self.message}... {self.tracker.percentage}% "
            f"({self.tracker.files_processed}/{self.tracker.total_files})"
        )

    async def _run(self) -> None:
        while True:
            self.stream.write(self.render_frame())
            self.stream.flush()
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self.stream.write("\r")
        self.stream.flush()
