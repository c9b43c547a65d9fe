"""
The speaker graph.

A Network owns the event clock, the event bus and every speaker. It is the
clock's dispatcher: when a queued action fires, the network resolves the AS
numbers it names and calls the matching speaker operation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from routesim.engine.clock import ActionFailure, EventClock
from routesim.engine.event_bus import EventBus
from routesim.errors import UnknownSpeakerError
from routesim.routing.actions import (
    Advertise,
    DumpTables,
    InstallForwarding,
    Receive,
    ReceiveWithdraw,
    Withdraw,
)
from routesim.routing.prefix import Prefix
from routesim.routing.route import Route
from routesim.routing.speaker import RoutingSpeaker

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]
TableDump = list[tuple[Prefix, Route]]


@dataclass(frozen=True)
class TableSnapshot:
    time: int | float
    label: str | None
    tables: dict[int, TableDump]


class Network:
    """
    Registry of speakers plus the machinery that drives them.

    If a clock is passed in, its dispatcher is replaced by this network's.
    """

    def __init__(
        self,
        clock: EventClock | None = None,
        event_bus: EventBus | None = None,
        propagation_delay: int | float = 0,
        scenario_name: str | None = None,
    ) -> None:
        self.clock = clock if clock is not None else EventClock()
        self.clock.dispatcher = self.dispatch
        self.event_bus = event_bus if event_bus is not None else EventBus()
        self.propagation_delay = propagation_delay
        self.scenario_name = scenario_name
        self.speakers: dict[int, RoutingSpeaker] = {}
        self.dumps: list[TableSnapshot] = []

        self._handlers: dict[type, Handler] = {
            Advertise: self._on_advertise,
            Receive: self._on_receive,
            ReceiveWithdraw: self._on_receive_withdraw,
            InstallForwarding: self._on_install,
            Withdraw: self._on_withdraw,
            DumpTables: self._on_dump,
        }

    # -----------------------------------------------------------------
    # Topology
    # -----------------------------------------------------------------

    def add_speaker(self, asn: int, endpoint: str | None = None) -> RoutingSpeaker:
        if asn in self.speakers:
            raise ValueError(f"Speaker AS{asn} already exists")

        speaker = RoutingSpeaker(
            asn,
            self.clock,
            event_bus=self.event_bus,
            endpoint=endpoint,
            propagation_delay=self.propagation_delay,
            scenario_name=self.scenario_name,
        )
        self.speakers[speaker.asn] = speaker
        return speaker

    def speaker(self, asn: int) -> RoutingSpeaker:
        try:
            return self.speakers[asn]
        except KeyError:
            raise UnknownSpeakerError(f"No speaker with AS number {asn}") from None

    def connect(self, a: int, b: int) -> None:
        """
        Register `a` and `b` as neighbours of each other.
        """
        self.speaker(a).add_neighbor(b)
        self.speaker(b).add_neighbor(a)

    def disconnect(self, a: int, b: int, withdraw_routes: bool = True) -> dict[int, list[Prefix]]:
        """
        Remove the adjacency at both ends.

        Returns, per speaker, the prefixes whose selection changed.
        """
        first, second = self.speaker(a), self.speaker(b)
        return {
            a: first.remove_neighbor(b, withdraw_routes),
            b: second.remove_neighbor(a, withdraw_routes),
        }

    def adjacencies(self) -> list[tuple[int, int]]:
        pairs = {
            tuple(sorted((speaker.asn, neighbor)))
            for speaker in self.speakers.values()
            for neighbor in speaker.neighbors
        }
        return sorted(pairs)

    # -----------------------------------------------------------------
    # Scheduling
    # -----------------------------------------------------------------

    def register_handler(self, action_type: type, handler: Handler) -> None:
        self._handlers[action_type] = handler

    def dispatch(self, action: Any) -> None:
        handler = self._handlers.get(type(action))
        if handler is None:
            raise TypeError(f"No handler for action {type(action).__name__}")
        handler(action)

    def schedule(self, time: int | float, action: Any) -> None:
        self.clock.schedule(time, action)

    def schedule_advertise(
        self, time: int | float, asn: int, prefix: str | Prefix, path: list[int] | None = None
    ) -> None:
        self.speaker(asn)
        route = Route(prefix=Prefix.parse(prefix), path=tuple(path or ()), next_hop=asn)
        self.schedule(time, Advertise(asn, route))

    def schedule_withdraw(self, time: int | float, asn: int, prefix: str | Prefix) -> None:
        self.speaker(asn)
        self.schedule(time, Withdraw(asn, Prefix.parse(prefix)))

    def schedule_install(
        self,
        time: int | float,
        asn: int,
        prefix: str | Prefix,
        next_hop: int,
        metric: int = 1,
        path: list[int] | None = None,
    ) -> None:
        self.speaker(asn)
        self.schedule(
            time,
            InstallForwarding(
                asn,
                Prefix.parse(prefix),
                next_hop,
                metric,
                tuple(path) if path is not None else None,
            ),
        )

    def schedule_dump(self, time: int | float, label: str | None = None) -> None:
        self.schedule(time, DumpTables(label))

    def run(self, stop_time: int | float) -> list[ActionFailure]:
        return self.clock.run(stop_time)

    # -----------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------

    def select(self, asn: int, prefix: str | Prefix) -> Route:
        return self.speaker(asn).select(Prefix.parse(prefix))

    def dump(self, asn: int) -> TableDump:
        return self.speaker(asn).dump()

    def dump_all(self) -> dict[int, TableDump]:
        return {asn: self.speakers[asn].dump() for asn in sorted(self.speakers)}

    @property
    def snapshots(self) -> dict[int | float, dict[int, TableDump]]:
        """
        Tables of the first dump taken at each time. Every dump, including
        several at one instant, is kept in `dumps`.
        """
        by_time: dict[int | float, dict[int, TableDump]] = {}
        for snapshot in self.dumps:
            by_time.setdefault(snapshot.time, snapshot.tables)
        return by_time

    def snapshot(self, label: str) -> TableSnapshot:
        """
        Return the most recent dump taken with `label`.
        """
        for snapshot in reversed(self.dumps):
            if snapshot.label == label:
                return snapshot
        raise KeyError(f"No table dump labelled {label!r}")

    # -----------------------------------------------------------------
    # Action handlers
    # -----------------------------------------------------------------

    def _on_advertise(self, action: Advertise) -> None:
        self.speaker(action.speaker).advertise(action.route)

    def _on_receive(self, action: Receive) -> None:
        self._delivered(action.from_as)
        self.speaker(action.speaker).receive(action.route, action.from_as)

    def _on_receive_withdraw(self, action: ReceiveWithdraw) -> None:
        self._delivered(action.from_as)
        self.speaker(action.speaker).receive_withdraw(action.prefix, action.from_as)

    def _on_install(self, action: InstallForwarding) -> None:
        self.speaker(action.speaker).install_forwarding(
            str(action.prefix.network),
            action.prefix.length,
            action.next_hop,
            metric=action.metric,
            path=action.path,
            propagate=action.propagate,
        )

    def _on_withdraw(self, action: Withdraw) -> None:
        self.speaker(action.speaker).withdraw(action.prefix)

    def _on_dump(self, action: DumpTables) -> None:
        tables = self.dump_all()
        self.dumps.append(TableSnapshot(self.clock.now(), action.label, tables))
        logger.info("Routing tables dumped at t=%s", self.clock.now())
        self.event_bus.publish(
            {
                "event_type": "routing.table_dump",
                "timestamp": self.clock.now(),
                "source": {"observer": "routesim"},
                "attributes": {
                    "label": action.label,
                    "tables": {
                        str(asn): [route.to_dict() for _, route in table]
                        for asn, table in tables.items()
                    },
                },
                "scenario": {"name": self.scenario_name},
            }
        )

    def _delivered(self, sender: int) -> None:
        speaker = self.speakers.get(sender)
        if speaker is not None:
            speaker.delivered()
