"""
Fault injector for the routesim control-plane simulator.

Two fault classes are modelled, both fired through the event clock:

- route leak: a speaker installs a prefix it does not own as if it were
  its own, bypassing advertisement rules
- adjacency failure: a neighbour relationship disappears at both ends and
  routes learned across it are withdrawn, so backups take over

After applying a fault the injector checks that the route tables changed
the way the fault should have changed them. A mismatch raises
FaultAssertionError, which the clock records like any failing action.
Faults are permanent; nothing recovers automatically.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from routesim.errors import FaultAssertionError, NoRouteError
from routesim.routing.actions import LinkFailure, RouteLeak
from routesim.routing.network import Network
from routesim.routing.prefix import Prefix
from routesim.routing.route import Route
from telemetry.generators.fault_events import FaultEventGenerator

logger = logging.getLogger(__name__)


@dataclass
class FaultRecord:
    """
    What a fault did, for later inspection.
    """

    kind: str
    time: int | float
    speakers: tuple[int, ...]
    details: dict[str, Any] = field(default_factory=dict)


class FaultInjector:
    """
    Schedules faults on a network and verifies their effect.
    """

    def __init__(self, network: Network) -> None:
        self.network = network
        self.events = FaultEventGenerator(network.clock, network.event_bus, network.scenario_name)
        self.records: list[FaultRecord] = []
        self.leaks_injected = 0
        self.links_failed = 0

        network.register_handler(RouteLeak, self.apply_leak)
        network.register_handler(LinkFailure, self.apply_link_failure)

    def schedule_leak(
        self,
        time: int | float,
        asn: int,
        prefix: str | Prefix,
        path: list[int] | None = None,
        next_hop: int | None = None,
        metric: int = 1,
        propagate: bool = False,
    ) -> RouteLeak:
        """
        Schedule `asn` to leak `prefix` at `time`.

        Args:
            time: Simulated time of the leak.
            asn: Leaking speaker.
            prefix: Prefix the speaker does not own.
            path: Path of the leaked entry, default the leaking AS alone.
            next_hop: Next hop of the leaked entry, default the leaking AS.
            metric: Metric of the installed entry.
            propagate: Also announce the leaked route to neighbours.
        """
        self.network.speaker(asn)
        action = RouteLeak(
            speaker=asn,
            prefix=Prefix.parse(prefix),
            path=tuple(path) if path is not None else None,
            next_hop=next_hop,
            metric=metric,
            propagate=propagate,
        )
        self.network.schedule(time, action)
        return action

    def schedule_link_failure(
        self, time: int | float, a: int, b: int, withdraw_routes: bool = True
    ) -> LinkFailure:
        """
        Schedule the adjacency between `a` and `b` to fail at `time`.
        """
        self.network.speaker(a)
        self.network.speaker(b)
        action = LinkFailure(a, b, withdraw_routes)
        self.network.schedule(time, action)
        return action

    # -----------------------------------------------------------------
    # Application
    # -----------------------------------------------------------------

    def apply_leak(self, action: RouteLeak) -> Route:
        speaker = self.network.speaker(action.speaker)
        prefix = action.prefix
        previous = speaker.table.get(prefix)

        logger.warning("Route leak: %s installs %s", speaker.name, prefix)
        leaked = speaker.install_forwarding(
            str(prefix.network),
            prefix.length,
            action.next_hop if action.next_hop is not None else speaker.asn,
            metric=action.metric,
            path=action.path if action.path is not None else (speaker.asn,),
            propagate=action.propagate,
        )
        speaker.mark_faulted()
        self.leaks_injected += 1

        self.records.append(
            FaultRecord(
                kind="route_leak",
                time=self.network.clock.now(),
                speakers=(speaker.asn,),
                details={"prefix": str(prefix), "leaked": leaked, "previous": previous},
            )
        )
        self.events.emit_route_leak(
            speaker.asn,
            str(prefix),
            leaked.to_dict(),
            previous.to_dict() if previous else None,
        )
        speaker.syslog.emit(
            message=f"%BGP-4-LEAK: {prefix} installed with path {list(leaked.path)}",
            severity="warning",
            extra={"bgp_event": "route_leak", "prefix": str(prefix)},
        )

        self._check_leak(speaker.asn, prefix, leaked, previous)
        return leaked

    def apply_link_failure(self, action: LinkFailure) -> dict[int, list[Prefix]]:
        a, b = action.a, action.b
        before = {
            asn: {prefix: route for prefix, route in self.network.dump(asn)} for asn in (a, b)
        }

        logger.warning("Adjacency AS%s <-> AS%s fails", a, b)
        changed = self.network.disconnect(a, b, action.withdraw_routes)
        self.network.speaker(a).mark_faulted()
        self.network.speaker(b).mark_faulted()
        self.links_failed += 1

        self.records.append(
            FaultRecord(
                kind="link_failure",
                time=self.network.clock.now(),
                speakers=(a, b),
                details={"changed": changed, "before": before},
            )
        )
        self.events.emit_link_failure(
            a, b, {asn: [str(p) for p in prefixes] for asn, prefixes in changed.items()}
        )

        if action.withdraw_routes:
            self._check_link_failure(a, b)
        return changed

    # -----------------------------------------------------------------
    # Verification
    # -----------------------------------------------------------------

    def _check_leak(
        self, asn: int, prefix: Prefix, leaked: Route, previous: Route | None
    ) -> None:
        speaker = self.network.speaker(asn)
        try:
            selected = speaker.select(prefix)
        except NoRouteError:
            raise FaultAssertionError(f"AS{asn} has no route to {prefix} after leak") from None

        if selected != leaked:
            raise FaultAssertionError(
                f"Leak of {prefix} at AS{asn} not selected: {selected} wins over {leaked}"
            )
        if previous is not None and selected == previous:
            raise FaultAssertionError(f"Leak of {prefix} at AS{asn} did not change selection")
        if speaker.is_legitimate(selected):
            raise FaultAssertionError(
                f"Leak of {prefix} at AS{asn} is consistent with AS{asn} ownership"
            )

    def _check_link_failure(self, a: int, b: int) -> None:
        for near, far in ((a, b), (b, a)):
            for prefix, route in self.network.dump(near):
                if route.next_hop == far:
                    raise FaultAssertionError(
                        f"AS{near} still selects {prefix} via failed neighbour AS{far}"
                    )
