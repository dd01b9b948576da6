"""Exceptions for hotconfig."""

import traceback

from .models import ErrorKind


class ConfigError(Exception):
    """Base exception for configuration errors.

    Carries the structured details callers and logs need: the underlying
    cause, an optional numeric code, a coarse kind and the stack captured
    where the error was created.

    Args:
        message: Human readable message (defaults to the cause's message)
        cause: Underlying exception, if any
        code: Optional numeric code (0 when unset)
        kind: Error category; subclasses provide a default
    """

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str | None = None,
        *,
        cause: BaseException | None = None,
        code: int = 0,
        kind: ErrorKind | None = None,
    ):
        if message is None:
            message = str(cause) if cause is not None else self.__class__.__name__
        super().__init__(message)
        self.cause = cause
        self.code = code
        if kind is not None:
            self.kind = kind
        # Drop this frame so the stack ends at the caller
        self.stack = traceback.StackSummary.from_list(traceback.extract_stack()[:-1])

    @classmethod
    def wrap(cls, err: BaseException, message: str | None = None, **kwargs) -> "ConfigError":
        """Wrap an arbitrary exception.

        Args:
            err: Exception to wrap
            message: Optional message overriding the cause's
            **kwargs: Forwarded to the constructor (code, kind)

        Returns:
            New error of this class with ``err`` as its cause
        """
        return cls(message, cause=err, **kwargs)

    def format_detail(self) -> str:
        """Render the message followed by the captured stack frames."""
        lines = [f"{self.__class__.__name__}[{self.kind.value}]: {self}"]
        if self.code:
            lines[0] += f" (code {self.code})"
        if self.cause is not None:
            lines.append(f"caused by {self.cause.__class__.__name__}: {self.cause}")
        lines.extend(f"{frame.filename}:{frame.lineno} {frame.name}" for frame in self.stack)
        return "\n".join(lines)


class LocationUnresolvableError(ConfigError):
    """The backing store location could not be determined."""

    kind = ErrorKind.NOT_FOUND


class ConfigIOError(ConfigError):
    """Error reading the backing store."""

    kind = ErrorKind.IO


class EmptyPayloadError(ConfigError):
    """The backing store returned zero bytes."""

    kind = ErrorKind.EMPTY_PAYLOAD


class DecodeError(ConfigError):
    """The payload could not be decoded into the configuration type."""

    kind = ErrorKind.DECODE


class WatchSourceError(ConfigError):
    """The change-detection backend failed or closed unexpectedly."""

    kind = ErrorKind.WATCH_SOURCE


class WatchStateError(ConfigError):
    """A watch operation was invalid for the current session state."""

    kind = ErrorKind.INVALID_STATE


class UnimplementedError(ConfigError):
    """The requested backing store is declared but not implemented."""

    kind = ErrorKind.UNIMPLEMENTED
