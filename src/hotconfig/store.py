"""Backing stores that configuration snapshots are read from."""

import logging
from pathlib import Path
from typing import Protocol

from .exceptions import ConfigIOError
from .exceptions import LocationUnresolvableError
from .exceptions import UnimplementedError
from .models import ErrorKind
from .models import FileLocation
from .utils import executable_dir

logger = logging.getLogger(__name__)


class BackingStore(Protocol):
    """Source of raw configuration payloads."""

    def resolve(self) -> Path:
        """Resolve the location of the payload."""
        ...

    def read_raw(self, path: Path) -> bytes:
        """Read the payload at a resolved location."""
        ...


class FileStore:
    """Configuration file on the local filesystem.

    By default the file lives next to the running executable (not the
    working directory), with symlinks in that directory resolved. An explicit
    path or location overrides this.

    Args:
        path: Explicit path to the configuration file
        location: Filename and base directory used when ``path`` is not given
    """

    def __init__(self, path: Path | str | None = None, location: FileLocation | None = None):
        self.path = Path(path) if path is not None else None
        self.location = location or FileLocation()

    def resolve(self) -> Path:
        """Resolve the physical path of the configuration file.

        Returns:
            Absolute path to the file (which need not exist)

        Raises:
            LocationUnresolvableError: If the base directory cannot be resolved
        """
        if self.path is not None:
            # Resolve the directory only; the file itself may not exist yet
            return self.path.absolute().parent.resolve() / self.path.name

        try:
            if self.location.base_dir is not None:
                base = Path(self.location.base_dir).absolute().resolve(strict=True)
            else:
                base = executable_dir()
        except OSError as e:
            raise LocationUnresolvableError.wrap(e, f"cannot resolve configuration directory: {e}") from e

        path = base / self.location.filename
        logger.debug(f"Resolved configuration path: {path}")
        return path

    def read_raw(self, path: Path) -> bytes:
        """Read the raw payload.

        Args:
            path: Path returned by resolve()

        Returns:
            File contents (possibly empty)

        Raises:
            ConfigIOError: If the file is missing (kind NOT_FOUND) or unreadable
        """
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise ConfigIOError.wrap(e, f"configuration file not found: {path}", kind=ErrorKind.NOT_FOUND) from e
        except OSError as e:
            raise ConfigIOError.wrap(e, f"failed to read configuration from {path}: {e}") from e

    def __repr__(self) -> str:
        return f"FileStore(path={self.path!r}, location={self.location!r})"


class RemoteStore:
    """Remote key/value backing store.

    Declared so applications can select it, but no client exists yet: every
    operation raises UnimplementedError, which managers treat like any other
    load failure.
    """

    def __init__(self, endpoints: list[str] | None = None, key: str = "config"):
        self.endpoints = list(endpoints or [])
        self.key = key

    def resolve(self) -> Path:
        raise UnimplementedError("remote configuration store is not implemented")

    def read_raw(self, path: Path) -> bytes:
        raise UnimplementedError("remote configuration store is not implemented")

    def __repr__(self) -> str:
        return f"RemoteStore(endpoints={self.endpoints!r}, key={self.key!r})"
