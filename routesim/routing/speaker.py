"""
Routing speaker: one simulated autonomous system.

A speaker owns its neighbour set and route table. It never calls another
speaker directly: every message it sends is a Receive or ReceiveWithdraw
action scheduled on the shared event clock, addressed by AS number.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum

from routesim.engine.clock import EventClock
from routesim.engine.event_bus import EventBus
from routesim.routing.actions import Receive, ReceiveWithdraw
from routesim.routing.prefix import Prefix
from routesim.routing.route import Route, RouteSource
from routesim.routing.route_table import RouteTable
from telemetry.generators.bgp_updates import BGPUpdateGenerator
from telemetry.generators.router_syslog import RouterSyslogGenerator

logger = logging.getLogger(__name__)


class SpeakerState(Enum):
    IDLE = "idle"
    ADVERTISING = "advertising"
    CONVERGED = "converged"
    FAULTED = "faulted"


class RoutingSpeaker:
    """
    A BGP-like speaker identified by its AS number.

    Messages to neighbours are delivered `propagation_delay` simulated
    seconds after they are sent (0 means the same instant).
    """

    def __init__(
        self,
        asn: int,
        clock: EventClock,
        event_bus: EventBus | None = None,
        endpoint: str | None = None,
        propagation_delay: int | float = 0,
        scenario_name: str | None = None,
    ) -> None:
        if propagation_delay < 0:
            raise ValueError(f"Propagation delay must not be negative, got {propagation_delay}")

        self.asn = int(asn)
        self.clock = clock
        self.endpoint = endpoint
        self.propagation_delay = propagation_delay
        self.neighbors: set[int] = set()
        self.table = RouteTable()
        self.owned: set[Prefix] = set()
        self.state = SpeakerState.IDLE
        self._in_flight = 0

        bus = event_bus if event_bus is not None else EventBus()
        self.updates = BGPUpdateGenerator(clock, bus, scenario_name)
        self.syslog = RouterSyslogGenerator(clock, bus, self.name, scenario_name)

    @property
    def name(self) -> str:
        return f"AS{self.asn}"

    def __repr__(self) -> str:
        return f"RoutingSpeaker(asn={self.asn}, state={self.state.value})"

    # -----------------------------------------------------------------
    # Neighbours
    # -----------------------------------------------------------------

    def add_neighbor(self, asn: int) -> None:
        if asn == self.asn:
            raise ValueError(f"{self.name} cannot be its own neighbour")
        self.neighbors.add(int(asn))

    def remove_neighbor(self, asn: int, withdraw_routes: bool = True) -> list[Prefix]:
        """
        Drop an adjacency at this end.

        With `withdraw_routes`, every route learned through the lost
        neighbour is removed and the affected prefixes fail over to their
        remaining alternates. Returns the prefixes whose selection changed.
        """
        if asn not in self.neighbors:
            return []

        self.neighbors.discard(asn)
        logger.warning("%s lost adjacency with AS%s", self.name, asn)
        self.syslog.session_down(asn, "adjacency disabled")

        if not withdraw_routes:
            return []

        changed = self.table.withdraw_next_hop(asn)
        for prefix in changed:
            self._selection_changed(prefix)
        return changed

    # -----------------------------------------------------------------
    # Protocol operations
    # -----------------------------------------------------------------

    def advertise(self, route: Route) -> Route:
        """
        Originate `route` and announce it to every neighbour.

        The speaker's AS is appended to the path if it is not there yet.
        While a static entry is selected for the prefix the local route is
        kept as an alternate but not announced; it goes out once the static
        entry is removed. Returns the local route as stored in the table.
        """
        local = replace(
            route.with_appended(self.asn),
            next_hop=self.asn,
            source=RouteSource.LOCAL,
            metric=0,
        )
        self.owned.add(local.prefix)
        logger.info("%s advertises %s path %s", self.name, local.prefix, list(local.path))

        self._enter(SpeakerState.ADVERTISING)
        if self.table.insert(local):
            self.syslog.best_path_changed(str(local.prefix), str(local))
        if self.table.get(local.prefix) == local:
            self._send_update(local)
        else:
            logger.debug("%s holds back %s: static entry selected", self.name, local.prefix)
        self._maybe_converge()
        return local

    def receive(self, route: Route, from_as: int) -> bool:
        """
        Handle an advertisement from a neighbour.

        Returns True if the selected route for the prefix changed.
        """
        if from_as not in self.neighbors:
            logger.debug("%s ignores %s from non-neighbour AS%s", self.name, route.prefix, from_as)
            return False

        if self.asn in route.path:
            logger.debug(
                "%s drops %s from AS%s: loop in path %s",
                self.name, route.prefix, from_as, list(route.path),
            )
            self.syslog.loop_detected(str(route.prefix), from_as, list(route.path))
            return False

        learned = Route(
            prefix=route.prefix,
            path=route.path,
            next_hop=from_as,
            source=RouteSource.LEARNED,
        )
        if not self.table.insert(learned):
            return False

        self._selection_changed(route.prefix)
        return True

    def receive_withdraw(self, prefix: Prefix, from_as: int) -> bool:
        """
        Handle a withdrawal from a neighbour.

        Returns True if the selected route for the prefix changed.
        """
        if not self.table.withdraw(prefix, from_as, RouteSource.LEARNED):
            return False

        self._selection_changed(prefix)
        return True

    def install_forwarding(
        self,
        network: str,
        mask: str | int,
        next_hop: int,
        metric: int = 1,
        path: tuple[int, ...] | list[int] | None = None,
        propagate: bool = False,
    ) -> Route:
        """
        Write a static forwarding entry, bypassing advertisement rules.

        Static entries win over local and learned routes. They are not
        announced unless `propagate` is set.
        """
        prefix = Prefix.from_mask(network, mask)
        route = Route(
            prefix=prefix,
            path=tuple(path or ()),
            next_hop=next_hop,
            source=RouteSource.STATIC,
            metric=metric,
        )
        logger.info("%s installs %s", self.name, route)
        self.updates.emit_install(self.asn, str(prefix), next_hop, metric, list(route.path))

        if self.table.insert(route):
            self._selection_changed(prefix, propagate=propagate)
        elif propagate:
            self._send_update(route)
        return route

    def withdraw(self, prefix: Prefix) -> bool:
        """
        Withdraw a locally originated prefix.

        Neighbours holding a route through this speaker drop it. Calling
        this again for the same prefix is a no-op. Returns True if anything
        was withdrawn.
        """
        had_local = any(r.source is RouteSource.LOCAL for r in self.table.alternates(prefix))
        if not had_local and prefix not in self.owned:
            return False

        self.owned.discard(prefix)
        logger.info("%s withdraws %s", self.name, prefix)

        if self.table.withdraw(prefix, self.asn, RouteSource.LOCAL):
            self._selection_changed(prefix)
        else:
            self._enter(SpeakerState.ADVERTISING)
            self._send_withdraw(prefix)
            self._maybe_converge()
        return True

    # -----------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------

    def select(self, prefix: Prefix) -> Route:
        return self.table.select(prefix)

    def is_legitimate(self, route: Route) -> bool:
        """
        Whether a route is consistent with what this speaker may originate.

        Advertised routes are always consistent. A static entry is
        consistent for a prefix this speaker owns, or when it points at
        another AS that is also the route's origin.
        """
        if route.source is not RouteSource.STATIC:
            return True
        if route.prefix in self.owned:
            return True
        return route.origin not in (None, self.asn) and route.next_hop != self.asn

    def dump(self) -> list[tuple[Prefix, Route]]:
        return self.table.dump()

    # -----------------------------------------------------------------
    # State
    # -----------------------------------------------------------------

    def mark_faulted(self) -> None:
        self._enter(SpeakerState.FAULTED)

    def delivered(self) -> None:
        """
        Called when one of this speaker's messages has reached its neighbour.
        """
        if self._in_flight > 0:
            self._in_flight -= 1
        self._maybe_converge()

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def _enter(self, state: SpeakerState) -> None:
        if self.state is state or self.state is SpeakerState.FAULTED:
            return
        logger.debug("%s %s -> %s", self.name, self.state.value, state.value)
        self.state = state

    def _maybe_converge(self) -> None:
        if self.state is SpeakerState.ADVERTISING and self._in_flight == 0:
            self._enter(SpeakerState.CONVERGED)

    # -----------------------------------------------------------------
    # Propagation
    # -----------------------------------------------------------------

    def _selection_changed(self, prefix: Prefix, propagate: bool = False) -> None:
        route = self.table.get(prefix)
        self._enter(SpeakerState.ADVERTISING)

        if route is None:
            self.syslog.route_removed(str(prefix))
            self._send_withdraw(prefix)
        else:
            self.syslog.best_path_changed(str(prefix), str(route))
            if route.source is RouteSource.STATIC and not propagate:
                # the previous best may have been announced
                self._send_withdraw(prefix)
            else:
                self._send_update(route)

        self._maybe_converge()

    def _deliver_at(self) -> int | float:
        return self.clock.now() + self.propagation_delay

    def _send_update(self, route: Route) -> None:
        outgoing = replace(route.with_appended(self.asn), next_hop=self.asn)
        when = self._deliver_at()
        sent = []

        for neighbor in sorted(self.neighbors):
            if neighbor in outgoing.path:
                # the neighbour would reject it; retract whatever it has from us
                self.clock.schedule(when, ReceiveWithdraw(neighbor, outgoing.prefix, self.asn))
            else:
                self.clock.schedule(when, Receive(neighbor, outgoing, self.asn))
                sent.append(neighbor)
            self._in_flight += 1

        if sent:
            self.updates.emit_update(self.asn, str(outgoing.prefix), list(outgoing.path), sent)

    def _send_withdraw(self, prefix: Prefix) -> None:
        when = self._deliver_at()
        neighbors = sorted(self.neighbors)

        for neighbor in neighbors:
            self.clock.schedule(when, ReceiveWithdraw(neighbor, prefix, self.asn))
            self._in_flight += 1

        if neighbors:
            self.updates.emit_withdraw(self.asn, str(prefix), neighbors)
