"""Types used with the geospatial commands."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any, Generic, TypeVar

from .values import ErrorKind, RedisError, to_float, to_list, to_redis_args, to_str

T = TypeVar("T")


def _incompatible(value: Any, message: str) -> RedisError:
    return RedisError(
        ErrorKind.TYPE_ERROR,
        "Response was of incompatible type",
        f"{message!r} (response was {value!r})",
    )


class Unit(enum.Enum):
    """Distance units for GEODIST and GEORADIUS."""

    METERS = "m"
    KILOMETERS = "km"
    MILES = "mi"
    FEET = "ft"

    def to_redis_args(self) -> list[bytes]:
        return [self.value.encode("ascii")]


@dataclass
class Coord(Generic[T]):
    """A (longitude, latitude) pair."""

    longitude: T
    latitude: T

    @classmethod
    def lon_lat(cls, longitude: T, latitude: T) -> Coord[T]:
        """Create a coordinate from longitude and latitude."""
        return cls(longitude, latitude)

    @classmethod
    def from_redis_value(
        cls, value: Any, convert: Callable[[Any], Any] = to_float
    ) -> Coord[Any]:
        """Parse a two-element reply, converting each part with ``convert``."""
        values = to_list(value, convert)
        if len(values) != 2:
            raise _incompatible(value, "Expect a pair of numbers")
        return cls(values[0], values[1])

    def to_redis_args(self) -> list[bytes]:
        return to_redis_args(self.longitude) + to_redis_args(self.latitude)

    def is_single_arg(self) -> bool:
        return False


class RadiusOrder(enum.Enum):
    """Sorting of GEORADIUS results."""

    UNSORTED = "unsorted"
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class RadiusOptions:
    """Options for GEORADIUS and GEORADIUSBYMEMBER; each builder returns a new object."""

    _with_coord: bool = False
    _with_dist: bool = False
    _count: int | None = None
    _order: RadiusOrder = RadiusOrder.UNSORTED
    _store: tuple[bytes, ...] | None = None
    _store_dist: tuple[bytes, ...] | None = None

    def limit(self, n: int) -> RadiusOptions:
        """Limit the results to the first ``n`` matches."""
        return replace(self, _count=n)

    def with_dist(self) -> RadiusOptions:
        """Return the distance of each match from the center."""
        return replace(self, _with_dist=True)

    def with_coord(self) -> RadiusOptions:
        """Return the coordinates of each match."""
        return replace(self, _with_coord=True)

    def order(self, order: RadiusOrder) -> RadiusOptions:
        """Sort the results."""
        return replace(self, _order=order)

    def store(self, key: Any) -> RadiusOptions:
        """Store the results in a sorted set at ``key`` instead of returning them."""
        return replace(self, _store=tuple(to_redis_args(key)))

    def store_dist(self, key: Any) -> RadiusOptions:
        """Store the results at ``key`` with the distance as the score."""
        return replace(self, _store_dist=tuple(to_redis_args(key)))

    def to_redis_args(self) -> list[bytes]:
        args: list[bytes] = []
        if self._with_coord:
            args.append(b"WITHCOORD")
        if self._with_dist:
            args.append(b"WITHDIST")
        if self._count is not None:
            args += [b"COUNT", str(self._count).encode("ascii")]
        if self._order is RadiusOrder.ASC:
            args.append(b"ASC")
        elif self._order is RadiusOrder.DESC:
            args.append(b"DESC")
        if self._store is not None:
            args.append(b"STORE")
            args.extend(self._store)
        if self._store_dist is not None:
            args.append(b"STOREDIST")
            args.extend(self._store_dist)
        return args

    def is_single_arg(self) -> bool:
        return False


@dataclass
class RadiusSearchResult:
    """One item of a GEORADIUS reply."""

    name: str
    coord: Coord[float] | None = None
    dist: float | None = None

    @classmethod
    def from_redis_value(cls, value: Any) -> RadiusSearchResult:
        """Parse either a bare member name or a name followed by distance and coordinates."""
        try:
            return cls(to_str(value))
        except RedisError:
            pass
        if isinstance(value, list):
            result = cls._parse_multi_values(value)
            if result is not None:
                return result
        raise _incompatible(value, "Response type not RadiusSearchResult compatible.")

    @classmethod
    def _parse_multi_values(cls, items: list[Any]) -> RadiusSearchResult | None:
        remaining = iter(items)
        try:
            name = to_str(next(remaining))
        except (StopIteration, RedisError):
            return None

        current = next(remaining, None)
        dist = None
        if current is not None:
            try:
                dist = to_float(current)
            except RedisError:
                pass
            else:
                current = next(remaining, None)

        coord = None
        if current is not None:
            try:
                coord = Coord.from_redis_value(current)
            except RedisError:
                pass

        return cls(name, coord, dist)