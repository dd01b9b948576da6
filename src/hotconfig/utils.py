"""Utility functions for hotconfig."""

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any

from .codec import zero_value
from .exceptions import DecodeError


def executable_dir() -> Path:
    """Directory of the running executable with symlinks resolved.

    Uses ``sys.argv[0]`` when it names a file (a script or frozen binary),
    falling back to ``sys.executable`` for interactive or ``-c`` sessions.

    Returns:
        Absolute, symlink-free directory path

    Raises:
        OSError: If the path cannot be resolved
    """
    candidate = sys.argv[0] if sys.argv and sys.argv[0] else ""
    if not candidate or not os.path.isfile(candidate):
        candidate = sys.executable
    if not candidate:
        raise OSError("cannot determine the running executable")
    return Path(candidate).absolute().parent.resolve(strict=True)


def is_zero(value: Any) -> bool:
    """Check whether a value is indistinguishable from "nothing supplied".

    ``None``, falsy scalars and empty containers are zero. A dataclass
    instance is zero when every field equals the one in ``zero_value`` of its
    class, i.e. all fields are at their defaults (or the zero of their
    annotation when they have none).

    Examples:
        >>> is_zero(None), is_zero(""), is_zero({}), is_zero(0.0)
        (True, True, True, True)

        >>> is_zero("x"), is_zero([0])
        (False, False)
    """
    if value is None:
        return True
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        try:
            zero = zero_value(type(value))
        except DecodeError:
            # Defaults rejected by the class itself; compare fields to empty
            return all(is_zero(getattr(value, f.name)) for f in dataclasses.fields(value))
        return all(getattr(value, f.name) == getattr(zero, f.name) for f in dataclasses.fields(value))
    try:
        return not value
    except (TypeError, ValueError):
        # Objects without a usable truth value (e.g. arrays) count as set
        return False
