"""
Actions that can sit in the event clock's queue.

Each action is a plain value naming the speaker(s) by AS number and
carrying its arguments. The network resolves AS numbers to speakers when
the action fires, so a queued action never holds a speaker reference.
"""

from __future__ import annotations

from dataclasses import dataclass

from routesim.routing.prefix import Prefix
from routesim.routing.route import Route


@dataclass(frozen=True)
class Advertise:
    speaker: int
    route: Route


@dataclass(frozen=True)
class Receive:
    speaker: int
    route: Route
    from_as: int


@dataclass(frozen=True)
class ReceiveWithdraw:
    speaker: int
    prefix: Prefix
    from_as: int


@dataclass(frozen=True)
class InstallForwarding:
    speaker: int
    prefix: Prefix
    next_hop: int
    metric: int = 1
    path: tuple[int, ...] | None = None
    propagate: bool = False


@dataclass(frozen=True)
class Withdraw:
    speaker: int
    prefix: Prefix


@dataclass(frozen=True)
class RouteLeak:
    """
    Make `speaker` install `prefix` as if it were its own.

    `path` defaults to the leaking speaker alone and `next_hop` to itself.
    """

    speaker: int
    prefix: Prefix
    path: tuple[int, ...] | None = None
    next_hop: int | None = None
    metric: int = 1
    propagate: bool = False


@dataclass(frozen=True)
class LinkFailure:
    a: int
    b: int
    withdraw_routes: bool = True


@dataclass(frozen=True)
class DumpTables:
    label: str | None = None


Action = (
    Advertise
    | Receive
    | ReceiveWithdraw
    | InstallForwarding
    | Withdraw
    | RouteLeak
    | LinkFailure
    | DumpTables
)
