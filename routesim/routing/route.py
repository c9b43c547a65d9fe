"""
Route values exchanged between speakers.

Routes are immutable. A speaker that re-advertises a route builds a new one
with its own AS number appended to the path.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from routesim.routing.prefix import Prefix


class RouteSource(Enum):
    """
    How a route entered a table. Declaration order is selection preference.
    """

    STATIC = "static"
    LOCAL = "local"
    LEARNED = "learned"

    @property
    def rank(self) -> int:
        return _SOURCE_RANK[self]


_SOURCE_RANK = {source: rank for rank, source in enumerate(RouteSource)}


@dataclass(frozen=True)
class Route:
    """
    A destination prefix, the AS path that reached it and the next hop.

    The first AS in the path is the originator.
    """

    prefix: Prefix
    path: tuple[int, ...] = field(default_factory=tuple)
    next_hop: int = 0
    source: RouteSource = RouteSource.LEARNED
    metric: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.prefix, Prefix):
            object.__setattr__(self, "prefix", Prefix.parse(self.prefix))
        object.__setattr__(self, "path", tuple(int(asn) for asn in self.path))
        object.__setattr__(self, "next_hop", int(self.next_hop))
        object.__setattr__(self, "metric", int(self.metric))

    @property
    def origin(self) -> int | None:
        return self.path[0] if self.path else None

    def with_appended(self, asn: int) -> Route:
        """
        Return a copy whose path ends with `asn`, unless it is already present.
        """
        if asn in self.path:
            return self
        return replace(self, path=self.path + (asn,))

    def preference_key(self) -> tuple[int, int, int, int]:
        """
        Sort key for best-route selection: smaller is better.
        """
        return (self.source.rank, self.metric, len(self.path), self.next_hop)

    def to_dict(self) -> dict:
        return {
            "prefix": str(self.prefix),
            "path": list(self.path),
            "next_hop": self.next_hop,
            "source": self.source.value,
            "metric": self.metric,
        }

    def __str__(self) -> str:
        path = " ".join(str(asn) for asn in self.path) or "-"
        return f"{self.prefix} via AS{self.next_hop} path [{path}] ({self.source.value})"
