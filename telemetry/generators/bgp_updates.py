# telemetry/generators/bgp_updates.py
"""
BGP update generator for the routesim simulator.

Emits one event per advertisement sent, withdrawal sent and forwarding
entry installed, stamped with the current simulated time.
"""

from typing import Any

from routesim.engine.clock import EventClock
from routesim.engine.event_bus import EventBus


class BGPUpdateGenerator:
    def __init__(self, clock: EventClock, event_bus: EventBus, scenario_name: str | None = None):
        """
        Initialize the generator.

        Args:
            clock: Shared event clock.
            event_bus: Shared event bus.
            scenario_name: Name of the scenario for correlation.
        """
        self.clock = clock
        self.event_bus = event_bus
        self.scenario_name = scenario_name

    def _publish(self, event_type: str, speaker_as: int, attributes: dict[str, Any]) -> None:
        self.event_bus.publish(
            {
                "event_type": event_type,
                "timestamp": self.clock.now(),
                "source": {"speaker": speaker_as, "observer": "routesim"},
                "attributes": attributes,
                "scenario": {"name": self.scenario_name},
            }
        )

    def emit_update(
        self,
        speaker_as: int,
        prefix: str,
        as_path: list[int],
        neighbors: list[int],
    ) -> None:
        """
        Emit a bgp.update event for an advertisement sent to neighbours.

        Args:
            speaker_as: Advertising AS.
            prefix: Prefix being announced.
            as_path: AS path as sent.
            neighbors: Neighbours the advertisement went to.
        """
        self._publish(
            "bgp.update",
            speaker_as,
            {
                "prefix": prefix,
                "as_path": list(as_path),
                "origin_as": as_path[0] if as_path else None,
                "next_hop": speaker_as,
                "neighbors": list(neighbors),
            },
        )

    def emit_withdraw(self, speaker_as: int, prefix: str, neighbors: list[int]) -> None:
        """
        Emit a bgp.withdraw event.
        """
        self._publish(
            "bgp.withdraw",
            speaker_as,
            {
                "prefix": prefix,
                "withdrawn_by_as": speaker_as,
                "neighbors": list(neighbors),
            },
        )

    def emit_install(
        self,
        speaker_as: int,
        prefix: str,
        next_hop: int,
        metric: int,
        as_path: list[int],
    ) -> None:
        """
        Emit a bgp.install event for a forwarding entry written directly.
        """
        self._publish(
            "bgp.install",
            speaker_as,
            {
                "prefix": prefix,
                "next_hop": next_hop,
                "metric": metric,
                "as_path": list(as_path),
            },
        )
