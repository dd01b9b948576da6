"""Tests for payload decoding."""

import json
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Any

import pytest
from hotconfig import DecodeError
from hotconfig import EmptyPayloadError
from hotconfig import ErrorKind
from hotconfig.codec import decode
from hotconfig.codec import format_for
from hotconfig.codec import zero_value


@dataclass
class Database:
    host: str = "localhost"
    port: int = 5432


@dataclass
class Settings:
    secret: str = ""
    ratio: float = 0.0
    debug: bool = False
    database: Database = field(default_factory=Database)
    hosts: list[str] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)
    timeout: int | None = None


@dataclass
class Shapes:
    pair: tuple[int, str] = (0, "")
    numbers: tuple[int, ...] = ()


@dataclass
class Required:
    name: str
    count: int


def encode(data: Any) -> bytes:
    return json.dumps(data).encode()


class TestDecode:
    """Test decode function."""

    def test_empty_payload_fails_fast(self):
        """Test an empty buffer raises EmptyPayloadError without parsing."""
        with pytest.raises(EmptyPayloadError) as exc_info:
            decode(b"", Settings)
        assert exc_info.value.kind is ErrorKind.EMPTY_PAYLOAD

    def test_simple_json(self):
        """Test decoding a flat JSON object."""
        settings = decode(b'{"secret":"changed"}', Settings)
        assert settings == Settings(secret="changed")

    def test_nested_dataclass(self):
        """Test nested objects are decoded into nested dataclasses."""
        settings = decode(encode({"database": {"host": "db", "port": 6543}}), Settings)
        assert settings.database == Database(host="db", port=6543)

    def test_missing_nested_fields_keep_defaults(self):
        """Test fields missing from a nested object keep their defaults."""
        settings = decode(encode({"database": {"host": "db"}}), Settings)
        assert settings.database.port == 5432

    def test_case_insensitive_keys(self):
        """Test keys match field names case-insensitively."""
        settings = decode(encode({"Secret": "s", "DEBUG": True}), Settings)
        assert settings.secret == "s"
        assert settings.debug is True

    def test_exact_key_wins(self):
        """Test an exact key match takes precedence over a folded one."""
        settings = decode(encode({"SECRET": "folded", "secret": "exact"}), Settings)
        assert settings.secret == "exact"

    def test_unknown_keys_ignored(self):
        """Test keys without a matching field are ignored."""
        settings = decode(encode({"secret": "s", "unused": 1}), Settings)
        assert settings == Settings(secret="s")

    def test_containers(self):
        """Test lists and dicts are decoded with their item types."""
        settings = decode(encode({"hosts": ["a", "b"], "labels": {"env": "prod"}}), Settings)
        assert settings.hosts == ["a", "b"]
        assert settings.labels == {"env": "prod"}

    def test_int_accepted_for_float(self):
        """Test integers are accepted for float fields."""
        settings = decode(encode({"ratio": 2}), Settings)
        assert settings.ratio == 2.0
        assert isinstance(settings.ratio, float)

    def test_optional_field(self):
        """Test optional fields accept null and values."""
        assert decode(encode({"timeout": None}), Settings).timeout is None
        assert decode(encode({"timeout": 30}), Settings).timeout == 30

    def test_required_fields_get_zero_values(self):
        """Test missing fields without defaults get zero values."""
        assert decode(encode({}), Required) == Required(name="", count=0)

    def test_type_mismatch(self):
        """Test a scalar of the wrong type raises DecodeError."""
        with pytest.raises(DecodeError) as exc_info:
            decode(encode({"secret": 5}), Settings)
        assert "$.secret" in str(exc_info.value)

    def test_bool_rejected_for_int(self):
        """Test booleans are not accepted for numeric fields."""
        with pytest.raises(DecodeError):
            decode(encode({"database": {"port": True}}), Settings)

    def test_list_item_mismatch(self):
        """Test list items are type checked."""
        with pytest.raises(DecodeError) as exc_info:
            decode(encode({"hosts": ["a", 1]}), Settings)
        assert "$.hosts[1]" in str(exc_info.value)

    def test_top_level_must_be_object(self):
        """Test a non-object payload raises DecodeError for a dataclass."""
        with pytest.raises(DecodeError):
            decode(b"[1, 2]", Settings)

    def test_malformed_json(self):
        """Test malformed JSON raises DecodeError with the parser error as cause."""
        with pytest.raises(DecodeError) as exc_info:
            decode(b'{"secret": ', Settings)
        assert isinstance(exc_info.value.cause, json.JSONDecodeError)

    def test_invalid_utf8(self):
        """Test undecodable bytes raise DecodeError."""
        with pytest.raises(DecodeError):
            decode(b"\xff\xfe\x00", Settings)

    def test_yaml(self):
        """Test YAML payloads are decoded."""
        payload = b"secret: from-yaml\ndatabase:\n  port: 1234\nhosts:\n  - a\n"
        settings = decode(payload, Settings, "yaml")
        assert settings.secret == "from-yaml"
        assert settings.database.port == 1234
        assert settings.hosts == ["a"]

    def test_malformed_yaml(self):
        """Test malformed YAML raises DecodeError."""
        with pytest.raises(DecodeError):
            decode(b"secret: [unclosed", Settings, "yaml")

    def test_unsupported_format(self):
        """Test an unknown format is rejected."""
        with pytest.raises(DecodeError):
            decode(b"{}", Settings, "toml")

    def test_fixed_length_tuple(self):
        """Test fixed-length tuples are converted position by position."""
        assert decode(b'{"pair": [1, "a"]}', Shapes).pair == (1, "a")

    def test_fixed_length_tuple_checks_each_position(self):
        """Test each tuple position is checked against its own type."""
        with pytest.raises(DecodeError) as exc_info:
            decode(b'{"pair": ["a", 1]}', Shapes)
        assert "$.pair[0]" in str(exc_info.value)

    def test_fixed_length_tuple_wrong_length(self):
        """Test a tuple payload of the wrong length raises DecodeError."""
        with pytest.raises(DecodeError):
            decode(b'{"pair": [1, "a", 2]}', Shapes)

    def test_variadic_tuple(self):
        """Test tuple[X, ...] accepts any number of items of one type."""
        assert decode(b'{"numbers": [1, 2, 3]}', Shapes).numbers == (1, 2, 3)
        with pytest.raises(DecodeError):
            decode(b'{"numbers": [1, "x"]}', Shapes)

    def test_plain_dict_type(self):
        """Test decoding into a plain dict returns the parsed mapping."""
        assert decode(b'{"a": 1}', dict) == {"a": 1}


class TestFormatFor:
    """Test format_for function."""

    def test_suffixes(self):
        """Test formats are chosen from the file suffix."""
        assert format_for(Path("config.json")) == "json"
        assert format_for(Path("config.yaml")) == "yaml"
        assert format_for(Path("config.YML")) == "yaml"

    def test_unknown_suffix_defaults_to_json(self):
        """Test unknown suffixes fall back to JSON."""
        assert format_for(Path("config.conf")) == "json"


class TestZeroValue:
    """Test zero_value function."""

    def test_scalars_and_containers(self):
        """Test zero values of basic annotations."""
        assert zero_value(str) == ""
        assert zero_value(int) == 0
        assert zero_value(bool) is False
        assert zero_value(list[str]) == []
        assert zero_value(dict[str, int]) == {}
        assert zero_value(int | None) is None

    def test_dataclass(self):
        """Test the zero value of a dataclass is built from defaults."""
        assert zero_value(Settings) == Settings()
        assert zero_value(Required) == Required(name="", count=0)
