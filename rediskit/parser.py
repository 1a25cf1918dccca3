"""Parsing of Redis protocol replies from streams and buffers."""

from __future__ import annotations

import io
import re
from typing import Any, NamedTuple, Union

from .values import ErrorKind, Okay, RedisError, Status, make_extension_error

_CRLF = b"\r\n"
_READ_SIZE = 8192
_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1
_INT_RE = re.compile(r"[+-]?[0-9]+")
_SERVER_ERROR_DESC = "An error was signalled by the server"

_ERROR_KINDS = {
    "ERR": ErrorKind.RESPONSE_ERROR,
    "EXECABORT": ErrorKind.EXEC_ABORT_ERROR,
    "LOADING": ErrorKind.BUSY_LOADING_ERROR,
    "NOSCRIPT": ErrorKind.NO_SCRIPT_ERROR,
    "MOVED": ErrorKind.MOVED,
    "ASK": ErrorKind.ASK,
    "TRYAGAIN": ErrorKind.TRY_AGAIN,
    "CLUSTERDOWN": ErrorKind.CLUSTER_DOWN,
    "CROSSSLOT": ErrorKind.CROSS_SLOT,
    "MASTERDOWN": ErrorKind.MASTER_DOWN,
    "READONLY": ErrorKind.READ_ONLY,
}

_Buffer = Union[bytes, bytearray]


class _Incomplete(Exception):
    """More input is needed to finish the current reply."""


class _Malformed(Exception):
    """The input does not follow the protocol."""


class _Frame(NamedTuple):
    """One decoded reply: either a value or a server error."""

    value: Any
    error: RedisError | None

    def result(self) -> Any:
        """Return the value, or raise the server error."""
        if self.error is not None:
            raise self.error
        return self.value


def _read_line(buf: _Buffer, pos: int) -> tuple[str, int]:
    end = buf.find(_CRLF, pos)
    if end < 0:
        raise _Incomplete
    try:
        text = bytes(buf[pos:end]).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise _Malformed(f"invalid utf-8 in line: {exc}") from None
    return text, end + 2


def _read_int(buf: _Buffer, pos: int) -> tuple[int, int]:
    line, pos = _read_line(buf, pos)
    text = line.strip()
    if not _INT_RE.fullmatch(text):
        raise _Malformed("Expected integer, got garbage")
    number = int(text)
    if not _I64_MIN <= number <= _I64_MAX:
        raise _Malformed("Expected integer, got garbage")
    return number, pos


def _server_error(line: str) -> RedisError:
    code, _, rest = line.partition(" ")
    detail = rest if " " in line else None
    kind = _ERROR_KINDS.get(code)
    if kind is None:
        return make_extension_error(code, detail)
    return RedisError(kind, _SERVER_ERROR_DESC, detail)


def _parse(buf: _Buffer, pos: int) -> tuple[Any, int]:
    """Parse one reply starting at ``pos``; server errors come back as RedisError objects."""
    if pos >= len(buf):
        raise _Incomplete
    tag = buf[pos]
    pos += 1
    if tag == ord("+"):
        line, pos = _read_line(buf, pos)
        return (Okay() if line == "OK" else Status(line)), pos
    if tag == ord(":"):
        return _read_int(buf, pos)
    if tag == ord("$"):
        size, pos = _read_int(buf, pos)
        if size < 0:
            return None, pos
        end = pos + size
        if len(buf) < end + 2:
            raise _Incomplete
        if bytes(buf[end : end + 2]) != _CRLF:
            raise _Malformed("Expected CRLF after bulk data")
        return bytes(buf[pos:end]), end + 2
    if tag == ord("*"):
        length, pos = _read_int(buf, pos)
        if length < 0:
            return None, pos
        items: list[Any] = []
        first_error: RedisError | None = None
        for _ in range(length):
            item, pos = _parse(buf, pos)
            if isinstance(item, RedisError):
                if first_error is None:
                    first_error = item
            else:
                items.append(item)
        return (first_error if first_error is not None else items), pos
    if tag == ord("-"):
        line, pos = _read_line(buf, pos)
        return _server_error(line), pos
    raise _Malformed(f"Unexpected token {bytes([tag])!r}")


class Parser:
    """Reads replies one at a time from a byte stream.

    Bytes read past the end of one reply are kept for the next call, so a
    parser should stay with the stream it reads from.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    def parse_value(self, reader: Any) -> Any:
        """Read and return one reply; server error replies are raised."""
        if isinstance(reader, (bytes, bytearray, memoryview)):
            reader = io.BytesIO(bytes(reader))
        read = getattr(reader, "read1", None) or reader.read
        while True:
            try:
                result, end = _parse(self._buffer, 0)
            except _Incomplete:
                chunk = read(_READ_SIZE)
                if not chunk:
                    raise RedisError(
                        ErrorKind.IO_ERROR, "unexpected end of file"
                    ) from None
                self._buffer += chunk
                continue
            except _Malformed as exc:
                self._buffer.clear()
                raise RedisError(
                    ErrorKind.RESPONSE_ERROR, "parse error", str(exc)
                ) from None
            del self._buffer[:end]
            if isinstance(result, RedisError):
                raise result
            return result


class ValueCodec:
    """Frames replies in a growing ``bytearray`` for stream-based transports."""

    def encode(self, item: bytes, buffer: bytearray) -> None:
        """Append an already packed command to the outgoing buffer."""
        buffer.extend(item)

    def decode(self, buffer: bytearray) -> _Frame | None:
        """Take one reply off the buffer, or return None if it is not complete yet."""
        return self._decode(buffer, eof=False)

    def decode_eof(self, buffer: bytearray) -> _Frame | None:
        """Like ``decode``, but a partial reply at end of input is an error."""
        return self._decode(buffer, eof=True)

    @staticmethod
    def _decode(buffer: bytearray, eof: bool) -> _Frame | None:
        if not buffer:
            return None
        try:
            result, end = _parse(buffer, 0)
        except _Incomplete:
            if eof:
                raise RedisError(
                    ErrorKind.RESPONSE_ERROR, "parse error", "unexpected end of input"
                ) from None
            return None
        except _Malformed as exc:
            raise RedisError(
                ErrorKind.RESPONSE_ERROR, "parse error", str(exc)
            ) from None
        del buffer[:end]
        if isinstance(result, RedisError):
            return _Frame(None, result)
        return _Frame(result, None)


def parse_redis_value(data: bytes) -> Any:
    """Parse a single reply from a byte string."""
    return Parser().parse_value(io.BytesIO(bytes(data)))