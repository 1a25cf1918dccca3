"""Option builders and reply types for the stream commands."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any, TypeVar

from .values import (
    ErrorKind,
    RedisError,
    Status,
    optional,
    to_dict,
    to_list,
    to_redis_args,
    to_str,
    to_tuple,
    to_uint,
)

T = TypeVar("T")

_USIZE_MODULUS = 1 << 64


def _identity(value: Any) -> Any:
    return value


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _as_usize(number: int) -> int:
    return number % _USIZE_MODULUS


def _parse_count(text: str) -> int:
    try:
        return to_uint(Status(text))
    except RedisError:
        return 0


def _field_map(value: Any) -> dict[str, Any]:
    return to_dict(value, to_str, _identity)


@dataclass(frozen=True)
class StreamMaxlen:
    """The ``MAXLEN [=|~] count`` argument of stream commands."""

    count: int
    approximate: bool = False

    @classmethod
    def equals(cls, count: int) -> StreamMaxlen:
        """Trim to exactly ``count`` entries."""
        return cls(count, approximate=False)

    @classmethod
    def approx(cls, count: int) -> StreamMaxlen:
        """Trim to roughly ``count`` entries."""
        return cls(count, approximate=True)

    def to_redis_args(self) -> list[bytes]:
        marker = b"~" if self.approximate else b"="
        return [b"MAXLEN", marker, *to_redis_args(self.count)]


@dataclass(frozen=True)
class StreamClaimOptions:
    """Options for XCLAIM; each builder returns a new object."""

    _idle: int | None = None
    _time: int | None = None
    _retry: int | None = None
    _force: bool = False
    _justid: bool = False

    def idle(self, ms: int) -> StreamClaimOptions:
        """Set the IDLE time in milliseconds."""
        return replace(self, _idle=ms)

    def time(self, ms_time: int) -> StreamClaimOptions:
        """Set the TIME in milliseconds."""
        return replace(self, _time=ms_time)

    def retry(self, count: int) -> StreamClaimOptions:
        """Set RETRYCOUNT."""
        return replace(self, _retry=count)

    def with_force(self) -> StreamClaimOptions:
        """Add FORCE."""
        return replace(self, _force=True)

    def with_justid(self) -> StreamClaimOptions:
        """Add JUSTID; the reply then holds only IDs."""
        return replace(self, _justid=True)

    def to_redis_args(self) -> list[bytes]:
        args: list[bytes] = []
        if self._idle is not None:
            args += [b"IDLE", str(self._idle).encode("ascii")]
        if self._time is not None:
            args += [b"TIME", str(self._time).encode("ascii")]
        if self._retry is not None:
            args += [b"RETRYCOUNT", str(self._retry).encode("ascii")]
        if self._force:
            args.append(b"FORCE")
        if self._justid:
            args.append(b"JUSTID")
        return args


@dataclass(frozen=True)
class StreamReadOptions:
    """Options for XREAD and XREADGROUP; each builder returns a new object."""

    _block: int | None = None
    _count: int | None = None
    _noack: bool = False
    _group: tuple[tuple[bytes, ...], tuple[bytes, ...]] | None = None

    def read_only(self) -> bool:
        """True unless a consumer group is set."""
        return self._group is None

    def noack(self) -> StreamReadOptions:
        """Do not add read messages to the pending entries list."""
        return replace(self, _noack=True)

    def block(self, ms: int) -> StreamReadOptions:
        """Block for up to ``ms`` milliseconds."""
        return replace(self, _block=ms)

    def count(self, n: int) -> StreamReadOptions:
        """Return at most ``n`` entries per stream."""
        return replace(self, _count=n)

    def group(self, group_name: Any, consumer_name: Any) -> StreamReadOptions:
        """Read as ``consumer_name`` of the consumer group ``group_name``."""
        return replace(
            self,
            _group=(
                tuple(to_redis_args(group_name)),
                tuple(to_redis_args(consumer_name)),
            ),
        )

    def to_redis_args(self) -> list[bytes]:
        args: list[bytes] = []
        if self._block is not None:
            args += [b"BLOCK", str(self._block).encode("ascii")]
        if self._count is not None:
            args += [b"COUNT", str(self._count).encode("ascii")]
        if self._group is not None:
            if self._noack:
                args.append(b"NOACK")
            args.append(b"GROUP")
            group_name, consumer_name = self._group
            args.extend(group_name)
            args.extend(consumer_name)
        return args


@dataclass
class StreamId:
    """One stream entry: its ID and its field/value pairs."""

    id: str = ""
    map: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_bulk_value(cls, value: Any) -> StreamId:
        """Parse ``[id, [field, value, ...]]``; anything else gives an empty entry."""
        entry = cls()
        if isinstance(value, list):
            if len(value) > 0:
                entry.id = to_str(value[0])
            if len(value) > 1:
                entry.map = _field_map(value[1])
        return entry

    def get(self, key: str, convert: Callable[[Any], T] = to_str) -> T | None:
        """Return the converted field value, or None if absent or unconvertible."""
        if key not in self.map:
            return None
        try:
            return convert(self.map[key])
        except RedisError:
            return None

    def contains_key(self, key: str) -> bool:
        """Whether the entry has the field ``key``."""
        return key in self.map

    def is_empty(self) -> bool:
        """Whether the entry has no fields."""
        return not self.map

    def __len__(self) -> int:
        return len(self.map)


def _stream_ids(value: Any) -> list[StreamId]:
    rows = to_list(value, lambda row: to_dict(row, to_str, _field_map))
    return [StreamId(entry_id, fields) for row in rows for entry_id, fields in row.items()]


@dataclass
class StreamKey:
    """A stream key and the entries read from it."""

    key: str = ""
    ids: list[StreamId] = field(default_factory=list)


@dataclass
class StreamReadReply:
    """The reply of XREAD and XREADGROUP."""

    keys: list[StreamKey] = field(default_factory=list)

    @classmethod
    def from_redis_value(cls, value: Any) -> StreamReadReply:
        rows = to_list(value, lambda row: to_dict(row, to_str, _stream_ids))
        return cls([StreamKey(key, ids) for row in rows for key, ids in row.items()])


@dataclass
class StreamRangeReply:
    """The reply of XRANGE and XREVRANGE."""

    ids: list[StreamId] = field(default_factory=list)

    @classmethod
    def from_redis_value(cls, value: Any) -> StreamRangeReply:
        return cls(_stream_ids(value))


@dataclass
class StreamClaimReply:
    """The reply of XCLAIM."""

    ids: list[StreamId] = field(default_factory=list)

    @classmethod
    def from_redis_value(cls, value: Any) -> StreamClaimReply:
        return cls(_stream_ids(value))


@dataclass
class StreamInfoConsumer:
    """A consumer of a group with its pending count and idle time."""

    name: str = ""
    pending: int = 0
    idle: int = 0


@dataclass
class StreamPendingData:
    """The summary form of an XPENDING reply with pending messages."""

    count: int = 0
    start_id: str = ""
    end_id: str = ""
    consumers: list[StreamInfoConsumer] = field(default_factory=list)


@dataclass
class StreamPendingReply:
    """The summary reply of XPENDING; ``data`` is None when nothing is pending."""

    data: StreamPendingData | None = None

    def count(self) -> int:
        """Number of pending messages."""
        return 0 if self.data is None else self.data.count

    @classmethod
    def from_redis_value(cls, value: Any) -> StreamPendingReply:
        def consumer_pair(item: Any) -> tuple[str, str] | None:
            return optional(item, lambda pair: to_tuple(pair, to_str, to_str))

        count, start, end, consumer_data = to_tuple(
            value,
            to_uint,
            lambda v: optional(v, to_str),
            lambda v: optional(v, to_str),
            lambda v: to_list(v, consumer_pair),
        )
        if count == 0:
            return cls()
        if start is None:
            raise RedisError(
                ErrorKind.IO_ERROR, "IllegalState: Non-zero pending expects start id"
            )
        if end is None:
            raise RedisError(
                ErrorKind.IO_ERROR, "IllegalState: Non-zero pending expects end id"
            )
        consumers = [
            StreamInfoConsumer(name=name, pending=_parse_count(pending))
            for pair in consumer_data
            if pair is not None
            for name, pending in [pair]
        ]
        return cls(StreamPendingData(count, start, end, consumers))


@dataclass
class StreamPendingId:
    """One pending message from the extended form of XPENDING."""

    id: str = ""
    consumer: str = ""
    last_delivered_ms: int = 0
    times_delivered: int = 0


@dataclass
class StreamPendingCountReply:
    """The extended reply of XPENDING."""

    ids: list[StreamPendingId] = field(default_factory=list)

    @classmethod
    def from_redis_value(cls, value: Any) -> StreamPendingCountReply:
        if not isinstance(value, list):
            raise RedisError(ErrorKind.TYPE_ERROR, "Cannot parse redis data (1)")
        reply = cls()
        for outer in value:
            if not isinstance(outer, list):
                raise RedisError(ErrorKind.TYPE_ERROR, "Cannot parse redis data (2)")
            match outer:
                case [bytes() as id_bytes, bytes() as consumer_bytes, ms, times] if (
                    _is_int(ms) and _is_int(times)
                ):
                    reply.ids.append(
                        StreamPendingId(
                            id=to_str(id_bytes),
                            consumer=to_str(consumer_bytes),
                            last_delivered_ms=_as_usize(ms),
                            times_delivered=_as_usize(times),
                        )
                    )
                case _:
                    raise RedisError(
                        ErrorKind.TYPE_ERROR, "Cannot parse redis data (3)"
                    )
        return reply


@dataclass
class StreamInfoStreamReply:
    """The reply of XINFO STREAM."""

    last_generated_id: str = ""
    radix_tree_keys: int = 0
    groups: int = 0
    length: int = 0
    first_entry: StreamId = field(default_factory=StreamId)
    last_entry: StreamId = field(default_factory=StreamId)

    @classmethod
    def from_redis_value(cls, value: Any) -> StreamInfoStreamReply:
        info = _field_map(value)
        reply = cls()
        if "last-generated-id" in info:
            reply.last_generated_id = to_str(info["last-generated-id"])
        if "radix-tree-nodes" in info:
            reply.radix_tree_keys = to_uint(info["radix-tree-nodes"])
        if "groups" in info:
            reply.groups = to_uint(info["groups"])
        if "length" in info:
            reply.length = to_uint(info["length"])
        if "first-entry" in info:
            reply.first_entry = StreamId.from_bulk_value(info["first-entry"])
        if "last-entry" in info:
            reply.last_entry = StreamId.from_bulk_value(info["last-entry"])
        return reply


@dataclass
class StreamInfoConsumersReply:
    """The reply of XINFO CONSUMERS."""

    consumers: list[StreamInfoConsumer] = field(default_factory=list)

    @classmethod
    def from_redis_value(cls, value: Any) -> StreamInfoConsumersReply:
        reply = cls()
        for info in to_list(value, _field_map):
            consumer = StreamInfoConsumer()
            if "name" in info:
                consumer.name = to_str(info["name"])
            if "pending" in info:
                consumer.pending = to_uint(info["pending"])
            if "idle" in info:
                consumer.idle = to_uint(info["idle"])
            reply.consumers.append(consumer)
        return reply


@dataclass
class StreamInfoGroup:
    """A consumer group of a stream."""

    name: str = ""
    consumers: int = 0
    pending: int = 0
    last_delivered_id: str = ""


@dataclass
class StreamInfoGroupsReply:
    """The reply of XINFO GROUPS."""

    groups: list[StreamInfoGroup] = field(default_factory=list)

    @classmethod
    def from_redis_value(cls, value: Any) -> StreamInfoGroupsReply:
        reply = cls()
        for info in to_list(value, _field_map):
            group = StreamInfoGroup()
            if "name" in info:
                group.name = to_str(info["name"])
            if "pending" in info:
                group.pending = to_uint(info["pending"])
            if "consumers" in info:
                group.consumers = to_uint(info["consumers"])
            if "last-delivered-id" in info:
                group.last_delivered_id = to_str(info["last-delivered-id"])
            reply.groups.append(group)
        return reply