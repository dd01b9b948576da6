"""Typed configuration manager with hot reload."""

import copy
import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Generic
from typing import TypeVar

from .codec import decode
from .codec import format_for
from .codec import zero_value
from .exceptions import ConfigError
from .exceptions import DecodeError
from .exceptions import WatchSourceError
from .exceptions import WatchStateError
from .models import DEFAULT_FILENAME
from .models import FileLocation
from .models import WatchState
from .store import BackingStore
from .store import FileStore
from .store import RemoteStore
from .utils import is_zero
from .watcher import FileWatcher

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Subscription:
    """A change callback that can be cancelled.

    The lock only guards the active flag, never the callback itself, so no
    invocation starts after cancel() returns while one already running may
    finish. Callbacks therefore run without any manager lock held and may
    call get/update/cancel/stop freely.
    """

    def __init__(self, callback: Callable):
        self.callback = callback
        self.active = True
        self._lock = threading.Lock()

    def notify(self, value) -> None:
        with self._lock:
            if not self.active:
                return
        self.callback(value)

    def cancel(self) -> None:
        with self._lock:
            self.active = False


class ConfigManager(Generic[T]):
    """Holds the current configuration snapshot of type ``T``.

    Reads never touch the backing store. Updates either replace the snapshot
    with an explicit value or reload it from the store, and a watch session
    reloads it whenever the backing file changes. Every successful change is
    dispatched to the callbacks registered with on_change().

    Args:
        config_type: Dataclass (or plain type) snapshots are decoded into
        store: Backing store (default: FileStore next to the executable)
        debounce_seconds: Quiet period that coalesces bursts of file events
        poll_interval: How often the watch session checks its observer
    """

    def __init__(
        self,
        config_type: type[T],
        store: BackingStore | None = None,
        *,
        debounce_seconds: float = 0.1,
        poll_interval: float = 0.5,
    ):
        self.config_type = config_type
        self.store = store if store is not None else FileStore()
        self.debounce_seconds = debounce_seconds
        self.poll_interval = poll_interval

        try:
            self._snapshot: T = zero_value(config_type)
        except DecodeError:
            self._snapshot = None  # type: ignore[assignment]
        self._snapshot_lock = threading.Lock()

        self._subscriptions: list[_Subscription] = []
        self._subscriptions_lock = threading.Lock()

        self._watcher: FileWatcher | None = None
        self._watch_lock = threading.Lock()

    # ===== Snapshot Access =====

    def get(self) -> T:
        """Get a copy of the current snapshot.

        Never blocks on I/O and is safe to call while a reload is running.
        """
        with self._snapshot_lock:
            snapshot = self._snapshot
        return copy.deepcopy(snapshot)

    def update(self, value: T | None = None) -> None:
        """Replace the snapshot, or reload it from the backing store.

        A zero value (None, or a value whose fields are all empty) cannot be
        told apart from "nothing supplied", so it is treated as a reload
        request. Pass None to ask for a reload explicitly.

        Args:
            value: New snapshot, or None/zero to reload

        Raises:
            LocationUnresolvableError: If the store location cannot be resolved
            ConfigIOError: If the store cannot be read
            EmptyPayloadError: If the store is empty
            DecodeError: If the payload cannot be decoded
        """
        if value is None or is_zero(value):
            self.reload()
            return
        self._publish(copy.deepcopy(value), "updated")

    def reload(self) -> T:
        """Reload the snapshot from the backing store.

        On failure the current snapshot is left untouched.

        Returns:
            Copy of the new snapshot

        Raises:
            ConfigError: Any load failure (see update())
        """
        value = self._load()
        self._publish(value, "reloaded")
        return copy.deepcopy(value)

    def init_data(self, default: T) -> "ConfigManager[T]":
        """Seed the snapshot from the backing store, falling back to ``default``.

        Load failures are logged, never raised, so a first run without a
        configuration file still starts. The default is not written back to
        the store and callbacks are not notified.

        Args:
            default: Snapshot to use when the store cannot be loaded

        Returns:
            This manager, for chaining
        """
        try:
            value = self._load()
            logger.info(f"Loaded initial {self._type_name} configuration from {self.store!r}")
        except ConfigError as e:
            logger.warning(f"Using default {self._type_name} configuration: {e}")
            value = copy.deepcopy(default)

        with self._snapshot_lock:
            self._snapshot = value
        return self

    # ===== Change Subscriptions =====

    def on_change(self, callback: Callable[[T], object]) -> Callable[[], None]:
        """Register a callback for every successful snapshot change.

        Callbacks run in registration order on the thread that made the
        change (the watch thread for file-triggered reloads) and receive a
        copy of the new snapshot. Registration does not invoke the callback.

        Args:
            callback: Called with the new snapshot

        Returns:
            Function that cancels this subscription; calling it again is a no-op
        """
        subscription = _Subscription(callback)
        with self._subscriptions_lock:
            self._subscriptions.append(subscription)

        def cancel() -> None:
            subscription.cancel()
            with self._subscriptions_lock:
                if subscription in self._subscriptions:
                    self._subscriptions.remove(subscription)

        return cancel

    # ===== Watch Session =====

    def watch(self, timeout: float | None = None) -> "ConfigManager[T]":
        """Start reloading whenever the backing file changes.

        Returns only after the change source is registered, so a change made
        right after this call is not missed.

        Args:
            timeout: Maximum seconds to wait for registration

        Returns:
            This manager, for chaining

        Raises:
            WatchStateError: If a watch session is already running
            LocationUnresolvableError: If the file location cannot be resolved
            WatchSourceError: If the change source cannot be registered
        """
        with self._watch_lock:
            if self._watcher is not None and self._watcher.state.is_running:
                raise WatchStateError(f"{self._type_name} configuration is already being watched")

            path = self.store.resolve()
            self._watcher = FileWatcher(
                path,
                self._reload_on_change,
                debounce_seconds=self.debounce_seconds,
                poll_interval=self.poll_interval,
            )
            self._watcher.start(timeout)
        return self

    def stop(self, timeout: float | None = None) -> None:
        """Stop the watch session, if any, and wait for it to finish."""
        with self._watch_lock:
            watcher = self._watcher
        if watcher is not None:
            watcher.stop(timeout)

    @property
    def watch_state(self) -> WatchState:
        """State of the current (or most recent) watch session."""
        watcher = self._watcher
        return watcher.state if watcher is not None else WatchState.UNSTARTED

    @property
    def watch_error(self) -> WatchSourceError | None:
        """Error that ended the most recent watch session, if it failed."""
        watcher = self._watcher
        return watcher.error if watcher is not None else None

    def __enter__(self) -> "ConfigManager[T]":
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def __repr__(self) -> str:
        return f"ConfigManager({self._type_name}, store={self.store!r}, watch={self.watch_state.value})"

    # ===== Private Helpers =====

    @property
    def _type_name(self) -> str:
        return getattr(self.config_type, "__name__", repr(self.config_type))

    def _load(self) -> T:
        """Resolve, read and decode the backing store."""
        path = self.store.resolve()
        data = self.store.read_raw(path)
        return decode(data, self.config_type, format_for(path))

    def _publish(self, value: T, action: str) -> None:
        """Swap in a new snapshot, then notify subscribers outside the lock."""
        with self._snapshot_lock:
            self._snapshot = value
        logger.info(f"{self._type_name} configuration {action}")
        self._dispatch(value)

    def _dispatch(self, value: T) -> None:
        with self._subscriptions_lock:
            subscriptions = list(self._subscriptions)

        for subscription in subscriptions:
            try:
                subscription.notify(copy.deepcopy(value))
            except Exception:
                logger.exception(f"{self._type_name} configuration change callback failed")

    def _reload_on_change(self) -> None:
        try:
            self.reload()
        except ConfigError as e:
            logger.warning(f"Keeping last known {self._type_name} configuration, reload failed: {e}")


def local(
    config_type: type[T],
    path: Path | str | None = None,
    *,
    filename: str = DEFAULT_FILENAME,
    base_dir: Path | str | None = None,
    **kwargs,
) -> ConfigManager[T]:
    """Create a manager backed by a local configuration file.

    Args:
        config_type: Snapshot type
        path: Explicit file path (overrides filename/base_dir)
        filename: File name used when no explicit path is given
        base_dir: Directory of the file (default: the executable's directory)
        **kwargs: Forwarded to ConfigManager

    Returns:
        New ConfigManager
    """
    location = FileLocation(filename, Path(base_dir) if base_dir is not None else None)
    return ConfigManager(config_type, FileStore(path, location), **kwargs)


def remote(
    config_type: type[T],
    endpoints: list[str] | None = None,
    key: str = "config",
    **kwargs,
) -> ConfigManager[T]:
    """Create a manager backed by a remote key/value store.

    The remote store is not implemented: loads fail with UnimplementedError,
    so only init_data() defaults and explicit updates are usable.
    """
    return ConfigManager(config_type, RemoteStore(endpoints, key), **kwargs)
