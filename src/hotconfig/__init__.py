"""hotconfig: Typed, hot-reloadable configuration for long-running processes.

This library keeps one strongly typed configuration snapshot per manager:
- Reads return a copy of the snapshot and never touch the disk
- Updates replace the snapshot, or reload it from the backing file
- An optional watch session reloads the snapshot whenever the file changes

Applications choose the snapshot type (usually a dataclass) and, optionally,
where the file lives. By default the file is ``default_config.json`` next to
the running executable.

Public API:
    ConfigManager: Holds the snapshot; get/update/reload/init_data/on_change/watch/stop
    local, remote: Factories for file-backed and (unimplemented) remote managers
    FileStore, RemoteStore: Backing stores
    FileLocation: Dataclass naming the configuration file and its directory
    ErrorKind, WatchState: Enums for error categories and watch lifecycle
    ConfigError and subclasses: Exception types

Example:
    ```python
    from dataclasses import dataclass
    import hotconfig

    @dataclass
    class Settings:
        secret: str = ""

    config = hotconfig.local(Settings).init_data(Settings(secret="hello world")).watch()
    cancel = config.on_change(lambda s: print("secret is now", s.secret))

    print(config.get().secret)

    # on shutdown
    cancel()
    config.stop()
    ```
"""

from .exceptions import ConfigError
from .exceptions import ConfigIOError
from .exceptions import DecodeError
from .exceptions import EmptyPayloadError
from .exceptions import LocationUnresolvableError
from .exceptions import UnimplementedError
from .exceptions import WatchSourceError
from .exceptions import WatchStateError
from .manager import ConfigManager
from .manager import local
from .manager import remote
from .models import ErrorKind
from .models import FileLocation
from .models import WatchState
from .store import FileStore
from .store import RemoteStore

__version__ = "0.1.0"

__all__ = [
    "ConfigManager",
    "local",
    "remote",
    "FileStore",
    "RemoteStore",
    "FileLocation",
    "ErrorKind",
    "WatchState",
    "ConfigError",
    "ConfigIOError",
    "DecodeError",
    "EmptyPayloadError",
    "LocationUnresolvableError",
    "UnimplementedError",
    "WatchSourceError",
    "WatchStateError",
]
