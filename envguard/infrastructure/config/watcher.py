"""
Env file watcher.

Detects changes to the backing env file and funnels them, after a debounce
window, into a reload callback running on the asyncio event loop. Two
implementations are provided: one driven by watchdog filesystem events and
one that polls the file's modification time.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Optional, Tuple

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

ReloadCallback = Callable[[], Any]


class IChangeWatcher(ABC):
    """Interface for env file watchers."""

    @abstractmethod
    async def start(self) -> None:
        """Start watching for changes."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop watching for changes."""
        pass

    @abstractmethod
    def is_running(self) -> bool:
        """Check if the watcher is currently running."""
        pass


class ReloadDebouncer:
    """
    Coalesce bursts of change notifications into one callback.

    Every ``trigger`` (re)arms a ``loop.call_later`` timer; the callback runs
    once the file has been quiet for ``delay`` seconds.
    """

    def __init__(
        self,
        callback: ReloadCallback,
        delay: float,
        loop: Optional[asyncio.AbstractEventLoop] = None
    ):
        self.callback = callback
        self.delay = delay
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self.fire_count = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        """Must be called on the event loop thread."""
        loop = self._loop or asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self.fire_count += 1
        try:
            result = self.callback()
            if asyncio.iscoroutine(result):
                task = asyncio.ensure_future(result)
                task.add_done_callback(self._log_failure)
        except Exception as e:
            logger.error(f"Error reloading configuration: {e}")

    @staticmethod
    def _log_failure(task: "asyncio.Future[Any]") -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Error reloading configuration: {task.exception()}")


class EnvFileHandler(FileSystemEventHandler):
    """
    Watchdog handler for a single file.

    Runs on the observer thread; it only forwards a notification to the
    event loop and never touches store state itself.
    """

    def __init__(
        self,
        file_path: Path,
        loop: asyncio.AbstractEventLoop,
        notify: Callable[[], None]
    ):
        super().__init__()
        self.file_path = file_path
        self.loop = loop
        self.notify = notify

    def _matches(self, path: Any) -> bool:
        if isinstance(path, bytes):
            path = path.decode()
        return Path(str(path)) == self.file_path

    def _forward(self) -> None:
        if self.loop.is_closed():
            return
        logger.debug(f"Env file change detected: {self.file_path}")
        self.loop.call_soon_threadsafe(self.notify)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(event.src_path):
            self._forward()

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(event.src_path):
            self._forward()

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors and FileStore.write replace the file via rename.
        if not event.is_directory and self._matches(getattr(event, "dest_path", "")):
            self._forward()


class ChangeWatcher(IChangeWatcher):
    """Env file watcher driven by watchdog filesystem events."""

    def __init__(
        self,
        file_path: Path,
        reload_callback: ReloadCallback,
        debounce_delay: float = 0.5
    ):
        """
        Initialize the watcher.

        Args:
            file_path: Env file to watch
            reload_callback: Called on the event loop after a debounced change
            debounce_delay: Quiet period in seconds before reloading
        """
        self.file_path = Path(file_path).resolve()
        self.reload_callback = reload_callback
        self.debounce_delay = debounce_delay

        self._observer: Optional[Any] = None
        self._handler: Optional[EnvFileHandler] = None
        self._debouncer: Optional[ReloadDebouncer] = None
        self._running = False

    async def start(self) -> None:
        """Start watching the env file."""
        if self._running:
            logger.warning("Env file watcher is already running")
            return

        loop = asyncio.get_running_loop()
        try:
            self._debouncer = ReloadDebouncer(
                self.reload_callback, self.debounce_delay, loop)
            self._handler = EnvFileHandler(
                file_path=self.file_path,
                loop=loop,
                notify=self._debouncer.trigger
            )

            self._observer = Observer()
            self._observer.schedule(
                self._handler,
                str(self.file_path.parent),
                recursive=False
            )
            self._observer.start()
            self._running = True

            logger.info(f"Started watching env file: {self.file_path}")

        except Exception as e:
            logger.error(f"Failed to start env file watcher: {e}")
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop watching and cancel any pending reload."""
        if self._debouncer is not None:
            self._debouncer.cancel()

        if self._observer is not None:
            try:
                self._observer.stop()
                self._observer.join(timeout=5.0)
            except Exception as e:
                logger.error(f"Error stopping env file watcher: {e}")
            self._observer = None

        was_running = self._running
        self._handler = None
        self._debouncer = None
        self._running = False

        if was_running:
            logger.info("Stopped env file watcher")

    def is_running(self) -> bool:
        return self._running and self._observer is not None and self._observer.is_alive()


class PollingChangeWatcher(IChangeWatcher):
    """
    Env file watcher that polls the file's modification time and size.

    Used where filesystem events are unreliable (network mounts, some
    container volumes).
    """

    def __init__(
        self,
        file_path: Path,
        reload_callback: ReloadCallback,
        poll_interval: float = 1.0,
        debounce_delay: float = 0.5
    ):
        self.file_path = Path(file_path).resolve()
        self.reload_callback = reload_callback
        self.poll_interval = poll_interval
        self.debounce_delay = debounce_delay

        self._running = False
        self._task: Optional[asyncio.Task[None]] = None
        self._debouncer: Optional[ReloadDebouncer] = None
        self._last_signature: Optional[Tuple[int, int]] = None

    def _signature(self) -> Optional[Tuple[int, int]]:
        try:
            stat = self.file_path.stat()
        except OSError:
            return None
        return (stat.st_mtime_ns, stat.st_size)

    async def start(self) -> None:
        if self._running:
            logger.warning("Polling env file watcher is already running")
            return

        self._debouncer = ReloadDebouncer(
            self.reload_callback, self.debounce_delay, asyncio.get_running_loop())
        self._last_signature = self._signature()
        self._running = True
        self._task = asyncio.create_task(self._poll_loop())

        logger.info(f"Started polling env file: {self.file_path}")

    async def stop(self) -> None:
        if not self._running:
            return

        self._running = False
        if self._debouncer is not None:
            self._debouncer.cancel()
            self._debouncer = None

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Stopped polling env file watcher")

    def is_running(self) -> bool:
        return self._running and self._task is not None and not self._task.done()

    def check_once(self) -> bool:
        """Compare the file against the last seen state; return whether it changed."""
        signature = self._signature()
        if signature is None or signature == self._last_signature:
            return False

        self._last_signature = signature
        logger.debug(f"Env file changed: {self.file_path}")
        if self._debouncer is not None:
            self._debouncer.trigger()
        return True

    async def _poll_loop(self) -> None:
        try:
            while self._running:
                try:
                    self.check_once()
                except Exception as e:
                    logger.error(f"Error in polling loop: {e}")
                await asyncio.sleep(self.poll_interval)
        except asyncio.CancelledError:
            logger.debug("Polling loop cancelled")


def create_change_watcher(
    file_path: Path,
    reload_callback: ReloadCallback,
    use_polling: bool = False,
    **kwargs: Any
) -> IChangeWatcher:
    """
    Create an env file watcher.

    Args:
        file_path: Env file to watch
        reload_callback: Callback invoked after a debounced change
        use_polling: Use the polling implementation instead of watchdog events
        **kwargs: ``debounce_delay`` and, for polling, ``poll_interval``

    Returns:
        Watcher instance
    """
    debounce_delay = kwargs.get('debounce_delay', 0.5)
    if use_polling:
        return PollingChangeWatcher(
            file_path=file_path,
            reload_callback=reload_callback,
            poll_interval=kwargs.get('poll_interval', 1.0),
            debounce_delay=debounce_delay
        )
    return ChangeWatcher(
        file_path=file_path,
        reload_callback=reload_callback,
        debounce_delay=debounce_delay
    )
