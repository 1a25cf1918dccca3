"""Redis reply values, errors, and conversions to and from command arguments."""

from __future__ import annotations

import enum
import re
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar, Union

T = TypeVar("T")
K = TypeVar("K")
V = TypeVar("V")


class ErrorKind(enum.Enum):
    """Broad categories of failures a Redis operation can report."""

    RESPONSE_ERROR = "ResponseError"
    AUTHENTICATION_FAILED = "AuthenticationFailed"
    TYPE_ERROR = "TypeError"
    EXEC_ABORT_ERROR = "ExecAbortError"
    BUSY_LOADING_ERROR = "BusyLoadingError"
    NO_SCRIPT_ERROR = "NoScriptError"
    INVALID_CLIENT_CONFIG = "InvalidClientConfig"
    MOVED = "Moved"
    ASK = "Ask"
    TRY_AGAIN = "TryAgain"
    CLUSTER_DOWN = "ClusterDown"
    CROSS_SLOT = "CrossSlot"
    MASTER_DOWN = "MasterDown"
    IO_ERROR = "IoError"
    CLIENT_ERROR = "ClientError"
    EXTENSION_ERROR = "ExtensionError"
    READ_ONLY = "ReadOnly"


_SERVER_CODES = {
    ErrorKind.RESPONSE_ERROR: "ERR",
    ErrorKind.EXEC_ABORT_ERROR: "EXECABORT",
    ErrorKind.BUSY_LOADING_ERROR: "LOADING",
    ErrorKind.NO_SCRIPT_ERROR: "NOSCRIPT",
    ErrorKind.MOVED: "MOVED",
    ErrorKind.ASK: "ASK",
    ErrorKind.TRY_AGAIN: "TRYAGAIN",
    ErrorKind.CLUSTER_DOWN: "CLUSTERDOWN",
    ErrorKind.CROSS_SLOT: "CROSSSLOT",
    ErrorKind.MASTER_DOWN: "MASTERDOWN",
    ErrorKind.READ_ONLY: "READONLY",
}


class RedisError(Exception):
    """An error raised by the server or while handling its replies."""

    def __init__(
        self,
        kind: ErrorKind,
        description: str,
        detail: str | None = None,
        *,
        code: str | None = None,
    ) -> None:
        super().__init__(kind, description, detail)
        self.kind = kind
        self.description = description
        self.detail = detail
        self._code = code

    @property
    def code(self) -> str | None:
        """The server error code, such as ``ERR`` or ``NOSCRIPT``, if known."""
        if self._code is not None:
            return self._code
        return _SERVER_CODES.get(self.kind)

    def __str__(self) -> str:
        if self.kind is ErrorKind.EXTENSION_ERROR:
            return f"{self.code}: {self.detail}"
        if self.detail is not None:
            return f"{self.description}: {self.detail}"
        return self.description

    def __repr__(self) -> str:
        return (
            f"RedisError({self.kind!r}, {self.description!r}, "
            f"{self.detail!r}, code={self.code!r})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RedisError):
            return NotImplemented
        return (self.kind, self.description, self.detail, self.code) == (
            other.kind,
            other.description,
            other.detail,
            other.code,
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.description, self.detail, self.code))


def make_extension_error(code: str, detail: str | None) -> RedisError:
    """Build the error for a server error code the client does not know."""
    return RedisError(
        ErrorKind.EXTENSION_ERROR,
        "An error was signalled by the server",
        detail if detail is not None else "Unknown extension error encountered",
        code=code,
    )


@dataclass(frozen=True)
class Status:
    """A simple status reply other than ``OK``."""

    text: str


class Okay:
    """The ``OK`` status reply; there is only one instance."""

    _instance: Okay | None = None

    def __new__(cls) -> Okay:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "Okay()"


# A reply value: None (nil), int, bytes (bulk data), Status, Okay or a list of values.
Value = Union[None, int, bytes, Status, Okay, list]


def _type_error(value: Any, message: str) -> RedisError:
    return RedisError(
        ErrorKind.TYPE_ERROR,
        "Response was of incompatible type",
        f"{message!r} (response was {value!r})",
    )


def _text_of(value: Any) -> str | None:
    """Text of a data or status reply, or None for other kinds."""
    if isinstance(value, Status):
        return value.text
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise _type_error(value, "Invalid UTF-8") from exc
    return None


def _is_int_reply(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


_INT_RE = re.compile(r"[+-]?[0-9]+")
_UINT_RE = re.compile(r"\+?[0-9]+")


def to_int(value: Any) -> int:
    """Convert an integer, data or status reply to an int."""
    if _is_int_reply(value):
        return value
    text = _text_of(value)
    if text is None:
        raise _type_error(value, "Response type not convertible to numeric.")
    if not _INT_RE.fullmatch(text):
        raise _type_error(value, "Could not convert from string.")
    return int(text)


def to_uint(value: Any) -> int:
    """Convert a reply to a non-negative int."""
    if _is_int_reply(value):
        if value < 0:
            raise _type_error(value, "Negative value for unsigned type.")
        return value
    text = _text_of(value)
    if text is None:
        raise _type_error(value, "Response type not convertible to numeric.")
    if not _UINT_RE.fullmatch(text):
        raise _type_error(value, "Could not convert from string.")
    return int(text)


def to_float(value: Any) -> float:
    """Convert an integer, data or status reply to a float."""
    if _is_int_reply(value):
        return float(value)
    text = _text_of(value)
    if text is None:
        raise _type_error(value, "Response type not convertible to numeric.")
    if not text or text != text.strip() or "_" in text:
        raise _type_error(value, "Could not convert from string.")
    try:
        return float(text)
    except ValueError as exc:
        raise _type_error(value, "Could not convert from string.") from exc


def to_bool(value: Any) -> bool:
    """Convert a reply to a bool: nil is false, integers by non-zero, "1"/"0" text."""
    if value is None:
        return False
    if isinstance(value, Okay):
        return True
    if _is_int_reply(value):
        return value != 0
    if isinstance(value, bytes):
        if value == b"1":
            return True
        if value == b"0":
            return False
        raise _type_error(value, "Response status not valid boolean")
    if isinstance(value, Status):
        if value.text == "1":
            return True
        if value.text == "0":
            return False
        raise _type_error(value, "Response status not valid boolean")
    raise _type_error(value, "Response type not bool compatible.")


def to_str(value: Any) -> str:
    """Convert a data, status, ``OK`` or integer reply to text."""
    if isinstance(value, Okay):
        return "OK"
    if _is_int_reply(value):
        return str(value)
    text = _text_of(value)
    if text is None:
        raise _type_error(value, "Response type not string compatible.")
    return text


def to_bytes(value: Any) -> bytes:
    """Return the payload of a bulk data reply."""
    if isinstance(value, bytes):
        return value
    raise _type_error(value, "Not binary data")


def to_list(value: Any, item: Callable[[Any], T]) -> list[T]:
    """Convert a multi-bulk reply to a list, converting every element."""
    if value is None:
        return []
    if isinstance(value, list):
        return [item(element) for element in value]
    if isinstance(value, bytes):
        return [item(value)]
    raise _type_error(value, "Response type not vector compatible.")


def to_tuple(value: Any, *args: Callable[[Any], Any]) -> tuple:
    """Convert a multi-bulk reply to a tuple; ``args`` gives one converter per element."""
    if not isinstance(value, list):
        raise _type_error(value, "Not a bulk response")
    if len(value) != len(args):
        raise _type_error(value, "Bulk response of wrong dimension")
    return tuple(convert(element) for convert, element in zip(args, value))


def to_set(value: Any, item: Callable[[Any], T]) -> set[T]:
    """Convert a multi-bulk reply to a set."""
    if value is None:
        return set()
    if isinstance(value, list):
        return {item(element) for element in value}
    raise _type_error(value, "Response type not hashset compatible")


def to_dict(
    value: Any, key: Callable[[Any], K], val: Callable[[Any], V]
) -> dict[K, V]:
    """Convert a flat multi-bulk reply of alternating keys and values to a dict."""
    if value is None:
        return {}
    if not isinstance(value, list):
        raise _type_error(value, "Response type not hashmap compatible")
    if len(value) % 2:
        raise _type_error(value, "Response has an odd number of elements for a map")
    pairs = iter(value)
    return {key(k): val(v) for k, v in zip(pairs, pairs)}


def optional(value: Any, convert: Callable[[Any], T]) -> T | None:
    """Return None for a nil reply, otherwise the converted value."""
    if value is None:
        return None
    return convert(value)


class InfoDict:
    """The parsed reply of the INFO command."""

    def __init__(self, entries: Mapping[str, Any] | None = None) -> None:
        self._map: dict[str, Any] = dict(entries or {})

    @classmethod
    def from_redis_value(cls, value: Any) -> InfoDict:
        """Parse ``key:value`` lines, skipping blanks and ``#`` comments."""
        text = to_str(value)
        entries: dict[str, Any] = {}
        for line in text.splitlines():
            if not line or line.startswith("#"):
                continue
            name, sep, rest = line.partition(":")
            if not sep:
                continue
            entries[name] = Status(rest)
        return cls(entries)

    def get(self, key: str, convert: Callable[[Any], T] = to_str) -> T | None:
        """Return the converted value for ``key``, or None if absent or unconvertible."""
        raw = self._map.get(key)
        if raw is None:
            return None
        try:
            return convert(raw)
        except RedisError:
            return None

    def __getitem__(self, key: str) -> Any:
        return self._map[key]

    def __contains__(self, key: object) -> bool:
        return key in self._map

    def __iter__(self) -> Iterator[str]:
        return iter(self._map)

    def __len__(self) -> int:
        return len(self._map)


def _iter_args(value: Any) -> Iterator[bytes]:
    method = getattr(value, "to_redis_args", None)
    if callable(method) and not isinstance(value, type):
        yield from method()
    elif value is None:
        return
    elif isinstance(value, bool):
        yield b"1" if value else b"0"
    elif isinstance(value, int):
        yield str(value).encode("ascii")
    elif isinstance(value, float):
        yield repr(value).encode("ascii")
    elif isinstance(value, str):
        yield value.encode("utf-8")
    elif isinstance(value, (bytes, bytearray, memoryview)):
        yield bytes(value)
    elif isinstance(value, Mapping):
        for k, v in value.items():
            yield from _iter_args(k)
            yield from _iter_args(v)
    elif isinstance(value, Iterable):
        for element in value:
            yield from _iter_args(element)
    else:
        raise TypeError(f"cannot convert {type(value).__name__} to redis arguments")


def to_redis_args(value: Any) -> list[bytes]:
    """Flatten a value into the byte-string arguments of a command."""
    return list(_iter_args(value))


def is_single_arg(value: Any) -> bool:
    """True if the value becomes exactly one command argument."""
    method = getattr(value, "is_single_arg", None)
    if callable(method) and not isinstance(value, type):
        return bool(method())
    return len(to_redis_args(value)) == 1