"""File-system watching for hot reload.

A FileWatcher runs one consumer thread per watch session. The thread owns a
watchdog Observer scheduled on the configuration file's directory (and on its
target's directory when the file is a symlink) and turns events for that file
into calls to ``on_change``.

Usage:
    ```python
    watcher = FileWatcher(Path("settings.json"), on_change=manager.reload)
    watcher.start()  # returns once the observer is registered

    # on shutdown
    watcher.stop()
    ```
"""

import logging
import os
import queue
import threading
from collections.abc import Callable
from pathlib import Path

from watchdog.events import EVENT_TYPE_CREATED
from watchdog.events import EVENT_TYPE_MODIFIED
from watchdog.events import EVENT_TYPE_MOVED
from watchdog.events import FileSystemEvent
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .exceptions import WatchSourceError
from .exceptions import WatchStateError
from .models import ErrorKind
from .models import WatchState

logger = logging.getLogger(__name__)

_CLOSE = object()


class _FileEventHandler(FileSystemEventHandler):
    """Forwards events that touch a single file into a queue."""

    TRIGGERS = frozenset({EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED})

    def __init__(self, paths: set[str], events: queue.Queue):
        super().__init__()
        self.paths = paths
        self.events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in self.TRIGGERS:
            return
        # A move only matters when it lands on our file (atomic replace)
        target = event.dest_path if event.event_type == EVENT_TYPE_MOVED else event.src_path
        if not target:
            return
        target = os.fsdecode(target)
        if target in self.paths or os.path.realpath(target) in self.paths:
            self.events.put(event)


class FileWatcher:
    """Watch session for one configuration file.

    Args:
        path: File to watch (its parent directory must exist)
        on_change: Called on the consumer thread after each burst of changes
        debounce_seconds: Quiet period that coalesces a burst of events
        poll_interval: How often the consumer checks the observer is alive
    """

    def __init__(
        self,
        path: Path,
        on_change: Callable[[], object],
        debounce_seconds: float = 0.1,
        poll_interval: float = 0.5,
    ):
        self.path = Path(path)
        self.on_change = on_change
        self.debounce_seconds = debounce_seconds
        self.poll_interval = poll_interval

        self._events: queue.Queue = queue.Queue()
        self._started = threading.Event()
        self._closing = threading.Event()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._state = WatchState.UNSTARTED
        self._error: WatchSourceError | None = None

    @property
    def state(self) -> WatchState:
        return self._state

    @property
    def error(self) -> WatchSourceError | None:
        """Error that ended the session, if it failed."""
        return self._error

    def start(self, timeout: float | None = None) -> None:
        """Start the session and wait until the observer is registered.

        Args:
            timeout: Maximum seconds to wait for registration (None waits
                indefinitely)

        Raises:
            WatchStateError: If this watcher was already started
            WatchSourceError: If the observer could not be registered
        """
        with self._lock:
            if self._state is not WatchState.UNSTARTED:
                raise WatchStateError(f"watch session is already {self._state.value}")
            self._state = WatchState.STARTING
            self._thread = threading.Thread(
                target=self._run,
                name=f"hotconfig-watch-{self.path.name}",
                daemon=True,
            )
            self._thread.start()

        if not self._started.wait(timeout):
            self.stop(timeout)
            raise WatchSourceError(
                f"timed out registering watch on {self.path}",
                kind=ErrorKind.TIMEOUT,
            )
        if self._state is WatchState.FAILED and self._error is not None:
            raise self._error

    def stop(self, timeout: float | None = None) -> None:
        """Close the change source and join the consumer thread.

        Safe to call more than once, and from a change callback.
        """
        with self._lock:
            thread = self._thread
            if thread is None or self._closing.is_set():
                return
            self._closing.set()

        self._events.put(_CLOSE)
        if thread is not threading.current_thread():
            thread.join(timeout)

    def _run(self) -> None:
        observer = Observer()
        # A symlinked file is watched both where the link lives and where
        # its target lives, since either may be edited
        paths = {os.path.abspath(self.path), os.path.realpath(self.path)}
        handler = _FileEventHandler(paths, self._events)
        try:
            for directory in sorted({os.path.dirname(p) for p in paths}):
                if not os.path.isdir(directory):
                    raise FileNotFoundError(f"directory does not exist: {directory}")
                observer.schedule(handler, directory, recursive=False)
            observer.start()
        except OSError as e:
            observer.stop()
            self._fail(WatchSourceError.wrap(e, f"cannot watch {self.path}: {e}"))
            self._started.set()
            return

        self._set_state(WatchState.ACTIVE)
        logger.info(f"Watching configuration file: {self.path}")
        self._started.set()

        try:
            self._consume(observer)
        finally:
            observer.stop()
            observer.join()
            self._set_state(WatchState.STOPPED)
            logger.info(f"Stopped watching configuration file: {self.path}")

    def _consume(self, observer: Observer) -> None:
        while not self._closing.is_set():
            try:
                event = self._events.get(timeout=self.poll_interval)
            except queue.Empty:
                if not observer.is_alive():
                    self._fail(WatchSourceError(f"file observer for {self.path} stopped unexpectedly"))
                    return
                continue

            if event is _CLOSE or not self._settle():
                return

            logger.debug(f"Configuration file changed ({event.event_type}): {self.path}")
            try:
                self.on_change()
            except Exception:
                logger.exception(f"Failed to handle change of {self.path}")

    def _settle(self) -> bool:
        """Swallow further events until a quiet period passes.

        Returns:
            False if the session was closed while settling
        """
        while True:
            try:
                event = self._events.get(timeout=self.debounce_seconds)
            except queue.Empty:
                return True
            if event is _CLOSE:
                return False

    def _set_state(self, state: WatchState) -> None:
        with self._lock:
            # FAILED and STOPPED are terminal
            if self._state in (WatchState.FAILED, WatchState.STOPPED):
                return
            self._state = state

    def _fail(self, error: WatchSourceError) -> None:
        self._error = error
        self._set_state(WatchState.FAILED)
        logger.error(f"Watch session for {self.path} failed: {error}")
