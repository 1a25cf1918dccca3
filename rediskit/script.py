"""Lua scripts that are loaded on demand and called by their hash."""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from .pipeline import ConnectionLike, _identity, cmd
from .values import ErrorKind, RedisError, to_redis_args

T = TypeVar("T")


class Script:
    """A Lua script; invoking it loads it into the server when needed."""

    def __init__(self, code: str) -> None:
        self._code = code
        self._hash = hashlib.sha1(code.encode("utf-8")).hexdigest()

    @property
    def code(self) -> str:
        """The script source."""
        return self._code

    def get_hash(self) -> str:
        """Return the SHA1 hash of the script in hexadecimal."""
        return self._hash

    def key(self, key: Any) -> ScriptInvocation:
        """Start an invocation with a key filled in."""
        return ScriptInvocation(self, keys=to_redis_args(key))

    def arg(self, value: Any) -> ScriptInvocation:
        """Start an invocation with an argument filled in."""
        return ScriptInvocation(self, args=to_redis_args(value))

    def prepare_invoke(self) -> ScriptInvocation:
        """Start an invocation with no keys and no arguments."""
        return ScriptInvocation(self)

    def invoke(self, con: ConnectionLike, convert: Callable[[Any], T] = _identity) -> T:
        """Run the script without keys or arguments."""
        return ScriptInvocation(self).invoke(con, convert)

    def __repr__(self) -> str:
        return f"Script(hash={self._hash!r})"


@dataclass
class ScriptInvocation:
    """Keys and arguments collected for one call of a script."""

    script: Script
    args: list[bytes] = field(default_factory=list)
    keys: list[bytes] = field(default_factory=list)

    def arg(self, value: Any) -> ScriptInvocation:
        """Add an argument, seen as ``ARGV[i]`` in the script."""
        self.args.extend(to_redis_args(value))
        return self

    def key(self, key: Any) -> ScriptInvocation:
        """Add a key, seen as ``KEYS[i]`` in the script."""
        self.keys.extend(to_redis_args(key))
        return self

    def invoke(self, con: ConnectionLike, convert: Callable[[Any], T] = _identity) -> T:
        """Run the script, loading it first if the server does not know it."""
        while True:
            evalsha = (
                cmd("EVALSHA")
                .arg(self.script.get_hash().encode("ascii"))
                .arg(len(self.keys))
                .arg(self.keys)
                .arg(self.args)
            )
            try:
                return evalsha.query(con, convert)
            except RedisError as err:
                if err.kind is not ErrorKind.NO_SCRIPT_ERROR:
                    raise
                cmd("SCRIPT").arg("LOAD").arg(self.script.code.encode("utf-8")).query(
                    con
                )