"""Data models for hotconfig."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

DEFAULT_FILENAME = "default_config.json"


class ErrorKind(Enum):
    """Coarse category of a configuration failure.

    Callers branch on the kind rather than on the concrete exception class
    when they only care about the broad reason (e.g. missing vs. corrupt).
    """

    UNKNOWN = "unknown"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    IO = "io"
    EMPTY_PAYLOAD = "empty_payload"
    DECODE = "decode"
    WATCH_SOURCE = "watch_source"
    INVALID_STATE = "invalid_state"
    UNIMPLEMENTED = "unimplemented"


class WatchState(Enum):
    """Lifecycle of a watch session.

    UNSTARTED -> STARTING -> ACTIVE -> STOPPED | FAILED. STARTING may also
    go straight to FAILED when the change source cannot be registered.
    """

    UNSTARTED = "unstarted"
    STARTING = "starting"
    ACTIVE = "active"
    STOPPED = "stopped"
    FAILED = "failed"

    @property
    def is_running(self) -> bool:
        return self in (WatchState.STARTING, WatchState.ACTIVE)


@dataclass(frozen=True)
class FileLocation:
    """Where the backing configuration file lives.

    Attributes:
        filename: Name of the configuration file
        base_dir: Directory holding the file (None means the directory of the
            running executable)
    """

    filename: str = DEFAULT_FILENAME
    base_dir: Path | None = None
