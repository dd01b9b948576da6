"""Decoding raw configuration payloads into typed snapshots."""

import dataclasses
import json
import logging
import types
import typing
from pathlib import Path
from typing import Any
from typing import TypeVar

import yaml

from .exceptions import DecodeError
from .exceptions import EmptyPayloadError

logger = logging.getLogger(__name__)

T = TypeVar("T")

FORMATS = ("json", "yaml")

_SUFFIX_FORMATS = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}


def format_for(path: Path) -> str:
    """Pick the payload format from a file suffix.

    Unknown suffixes are treated as JSON.

    Args:
        path: Path to the backing file

    Returns:
        "json" or "yaml"
    """
    return _SUFFIX_FORMATS.get(path.suffix.lower(), "json")


def decode(data: bytes, config_type: type[T], fmt: str = "json") -> T:
    """Decode a raw payload into ``config_type``.

    Args:
        data: Raw bytes read from the backing store
        config_type: Dataclass (or plain type such as dict) to build
        fmt: Payload format, "json" or "yaml"

    Returns:
        Decoded snapshot

    Raises:
        EmptyPayloadError: If ``data`` is empty
        DecodeError: If the payload is malformed or does not fit the type
    """
    if not data:
        raise EmptyPayloadError("configuration payload is empty")
    if fmt not in FORMATS:
        raise DecodeError(f"unsupported payload format: {fmt}")

    try:
        text = data.decode("utf-8")
        raw = json.loads(text) if fmt == "json" else yaml.safe_load(text)
    except (UnicodeDecodeError, ValueError, yaml.YAMLError) as e:
        raise DecodeError.wrap(e, f"malformed {fmt} payload: {e}") from e

    logger.debug(f"Decoding {len(data)} byte {fmt} payload into {getattr(config_type, '__name__', config_type)}")
    return convert(raw, config_type)


def convert(raw: Any, target: Any, where: str = "$") -> Any:
    """Convert parsed payload data into an instance of ``target``.

    Keys are matched to dataclass fields by exact name first, then
    case-insensitively. Unknown keys are ignored and missing fields take
    their default, or the zero value of their annotation.

    Args:
        raw: Parsed JSON/YAML data
        target: Type annotation to convert to
        where: Path of the value inside the payload, for error messages

    Returns:
        Converted value

    Raises:
        DecodeError: If the data does not fit the annotation
    """
    if target is Any or target is object:
        return raw

    origin = typing.get_origin(target)
    args = typing.get_args(target)

    if origin is typing.Union or origin is types.UnionType:
        if raw is None and type(None) in args:
            return None
        last_error: DecodeError | None = None
        for arg in args:
            if arg is type(None):
                continue
            try:
                return convert(raw, arg, where)
            except DecodeError as e:
                last_error = e
        raise last_error or DecodeError(f"{where}: no matching type in {target}")

    if dataclasses.is_dataclass(target):
        return _convert_dataclass(raw, target, where)

    if origin in (list, tuple, set, frozenset):
        if not isinstance(raw, list):
            raise DecodeError(f"{where}: expected a list, got {type(raw).__name__}")
        if origin is tuple and args and not (len(args) == 2 and args[1] is Ellipsis):
            # Fixed-length tuple: one annotation per position
            if len(raw) != len(args):
                raise DecodeError(f"{where}: expected {len(args)} items, got {len(raw)}")
            return tuple(convert(item, arg, f"{where}[{i}]") for i, (item, arg) in enumerate(zip(raw, args)))
        item_type = args[0] if args else Any
        items = [convert(item, item_type, f"{where}[{i}]") for i, item in enumerate(raw)]
        return origin(items)

    if origin is dict:
        if not isinstance(raw, dict):
            raise DecodeError(f"{where}: expected a mapping, got {type(raw).__name__}")
        value_type = args[1] if len(args) == 2 else Any
        return {key: convert(value, value_type, f"{where}.{key}") for key, value in raw.items()}

    if raw is None:
        return zero_value(target)

    if target is float and isinstance(raw, int) and not isinstance(raw, bool):
        return float(raw)
    if target in (int, float) and isinstance(raw, bool):
        raise DecodeError(f"{where}: expected {target.__name__}, got bool")
    if isinstance(target, type):
        if isinstance(raw, target):
            return raw
        raise DecodeError(f"{where}: expected {target.__name__}, got {type(raw).__name__}")

    # Unhandled typing constructs (Literal, NewType, ...) pass through as parsed
    return raw


def _convert_dataclass(raw: Any, target: type, where: str) -> Any:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise DecodeError(f"{where}: expected a mapping for {target.__name__}, got {type(raw).__name__}")

    try:
        hints = typing.get_type_hints(target)
    except (NameError, TypeError) as e:
        raise DecodeError.wrap(e, f"cannot resolve annotations of {target.__name__}: {e}") from e

    folded = {str(key).lower(): key for key in raw}
    kwargs = {}
    for field in dataclasses.fields(target):
        if not field.init:
            continue
        annotation = hints.get(field.name, Any)
        key = field.name if field.name in raw else folded.get(field.name.lower())
        if key is not None:
            kwargs[field.name] = convert(raw[key], annotation, f"{where}.{field.name}")
        elif field.default is dataclasses.MISSING and field.default_factory is dataclasses.MISSING:
            kwargs[field.name] = zero_value(annotation)

    try:
        return target(**kwargs)
    except (TypeError, ValueError) as e:
        raise DecodeError.wrap(e, f"{where}: cannot build {target.__name__}: {e}") from e


def zero_value(target: Any) -> Any:
    """Zero value for a type annotation.

    Examples:
        >>> zero_value(str), zero_value(int), zero_value(list[str])
        ('', 0, [])
    """
    origin = typing.get_origin(target) or target
    if origin is typing.Union or origin is types.UnionType:
        return None
    if dataclasses.is_dataclass(target):
        return _convert_dataclass({}, target, "$")
    if origin in (str, int, float, bool, list, dict, set, tuple, frozenset):
        return origin()
    return None
