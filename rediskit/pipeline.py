"""Commands, pipelines and the connection interface they are sent through."""

from __future__ import annotations

import abc
from collections.abc import Callable, Iterable, Iterator
from typing import Any, TypeVar

from .values import ErrorKind, RedisError, to_redis_args

T = TypeVar("T")


def _identity(value: Any) -> Any:
    return value


class ConnectionLike(abc.ABC):
    """Anything that can send packed commands and return their replies."""

    @abc.abstractmethod
    def req_packed_command(self, packed: bytes) -> Any:
        """Send one packed command and return its reply."""

    @abc.abstractmethod
    def req_packed_commands(self, packed: bytes, offset: int, count: int) -> list[Any]:
        """Send several packed commands, skip ``offset`` replies and return ``count``."""

    def supports_pipelining(self) -> bool:
        """Whether several commands may be sent in one go."""
        return True


def pack_command(args: Iterable[bytes]) -> bytes:
    """Encode arguments as a protocol array of bulk strings."""
    items = [bytes(arg) for arg in args]
    parts = [b"*%d\r\n" % len(items)]
    for item in items:
        parts.append(b"$%d\r\n" % len(item))
        parts.append(item)
        parts.append(b"\r\n")
    return b"".join(parts)


class Cmd:
    """A single command: a name followed by its arguments."""

    def __init__(self) -> None:
        self._args: list[bytes] = []

    @property
    def args(self) -> tuple[bytes, ...]:
        """All arguments, the command name first."""
        return tuple(self._args)

    def arg(self, value: Any) -> Cmd:
        """Append the arguments ``value`` converts to."""
        self._args.extend(to_redis_args(value))
        return self

    def get_packed_command(self) -> bytes:
        """Return the command encoded for the wire."""
        return pack_command(self._args)

    def query(self, con: ConnectionLike, convert: Callable[[Any], T] = _identity) -> T:
        """Send the command and convert its reply."""
        return convert(con.req_packed_command(self.get_packed_command()))

    def copy(self) -> Cmd:
        """Return an independent copy of this command."""
        clone = Cmd()
        clone._args = list(self._args)
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cmd):
            return NotImplemented
        return self._args == other._args

    def __repr__(self) -> str:
        return f"Cmd({self._args!r})"


def cmd(name: str) -> Cmd:
    """Start a new command with the given name."""
    return Cmd().arg(name)


def _encode_pipeline(commands: Iterable[Cmd], atomic: bool) -> bytes:
    body = b"".join(command.get_packed_command() for command in commands)
    if atomic:
        return cmd("MULTI").get_packed_command() + body + cmd("EXEC").get_packed_command()
    return body


class Pipeline:
    """Several commands sent in one go, optionally wrapped in MULTI/EXEC."""

    def __init__(self) -> None:
        self._commands: list[Cmd] = []
        self._transaction_mode = False
        self._ignored: set[int] = set()

    def atomic(self) -> Pipeline:
        """Wrap the whole pipeline in MULTI/EXEC when it is sent."""
        self._transaction_mode = True
        return self

    def get_packed_pipeline(self) -> bytes:
        """Return all commands encoded for the wire."""
        return _encode_pipeline(self._commands, self._transaction_mode)

    def _make_results(self, replies: Iterable[Any]) -> list[Any]:
        return [
            reply for index, reply in enumerate(replies) if index not in self._ignored
        ]

    def _execute_pipelined(self, con: ConnectionLike) -> list[Any]:
        replies = con.req_packed_commands(
            _encode_pipeline(self._commands, False), 0, len(self._commands)
        )
        return self._make_results(replies)

    def _execute_transaction(self, con: ConnectionLike) -> list[Any] | None:
        replies = list(
            con.req_packed_commands(
                _encode_pipeline(self._commands, True), len(self._commands) + 1, 1
            )
        )
        if replies:
            last = replies.pop()
            if last is None:
                return None
            if isinstance(last, list):
                return self._make_results(last)
        raise RedisError(
            ErrorKind.RESPONSE_ERROR, "Invalid response when parsing multi response"
        )

    def query(self, con: ConnectionLike, convert: Callable[[Any], T] = _identity) -> T:
        """Send the pipeline and convert the list of non-ignored replies."""
        if not con.supports_pipelining():
            raise RedisError(
                ErrorKind.RESPONSE_ERROR,
                "This connection does not support pipelining.",
            )
        if not self._commands:
            value: Any = []
        elif self._transaction_mode:
            value = self._execute_transaction(con)
        else:
            value = self._execute_pipelined(con)
        return convert(value)

    def execute(self, con: ConnectionLike) -> None:
        """Send the pipeline, discarding the replies."""
        self.query(con)

    def add_command(self, command: Cmd) -> Pipeline:
        """Append an existing command."""
        self._commands.append(command)
        return self

    def cmd(self, name: str) -> Pipeline:
        """Start a new command; later ``arg`` calls apply to it."""
        return self.add_command(cmd(name))

    def cmd_iter(self) -> Iterator[Cmd]:
        """Iterate over the commands in the pipeline."""
        return iter(self._commands)

    def ignore(self) -> Pipeline:
        """Drop the reply of the last command from the results."""
        if self._commands:
            self._ignored.add(len(self._commands) - 1)
        return self

    def arg(self, value: Any) -> Pipeline:
        """Add an argument to the last command."""
        if not self._commands:
            raise IndexError("No command on stack")
        self._commands[-1].arg(value)
        return self

    def clear(self) -> None:
        """Remove all commands and ignore marks."""
        self._commands.clear()
        self._ignored.clear()

    def __len__(self) -> int:
        return len(self._commands)


def pipe() -> Pipeline:
    """Create an empty pipeline."""
    return Pipeline()