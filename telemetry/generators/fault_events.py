# telemetry/generators/fault_events.py
"""
Fault event generator for the routesim simulator.

Every injected fault is published as a fault.* event carrying enough
detail to compare the table state before and after.
"""

from routesim.engine.clock import EventClock
from routesim.engine.event_bus import EventBus


class FaultEventGenerator:
    def __init__(self, clock: EventClock, event_bus: EventBus, scenario_name: str | None = None):
        self.clock = clock
        self.event_bus = event_bus
        self.scenario_name = scenario_name

    def emit_route_leak(
        self,
        speaker_as: int,
        prefix: str,
        leaked: dict,
        previous: dict | None,
    ) -> None:
        """
        Emit a fault.route_leak event.

        Args:
            speaker_as: AS that installed the leaked route.
            prefix: Leaked prefix.
            leaked: The installed route, as a dict.
            previous: The route selected before the leak, if any.
        """
        self.event_bus.publish(
            {
                "event_type": "fault.route_leak",
                "timestamp": self.clock.now(),
                "source": {"speaker": speaker_as, "observer": "fault-injector"},
                "attributes": {
                    "prefix": prefix,
                    "leaked_route": leaked,
                    "previous_route": previous,
                },
                "scenario": {"name": self.scenario_name},
            }
        )

    def emit_link_failure(self, a: int, b: int, withdrawn: dict[int, list[str]]) -> None:
        """
        Emit a fault.link_failure event.

        Args:
            a: One end of the failed adjacency.
            b: The other end.
            withdrawn: Per speaker, the prefixes whose selection changed.
        """
        self.event_bus.publish(
            {
                "event_type": "fault.link_failure",
                "timestamp": self.clock.now(),
                "source": {"speaker": a, "observer": "fault-injector"},
                "attributes": {
                    "endpoints": [a, b],
                    "affected_prefixes": {str(asn): prefixes for asn, prefixes in withdrawn.items()},
                },
                "scenario": {"name": self.scenario_name},
            }
        )
