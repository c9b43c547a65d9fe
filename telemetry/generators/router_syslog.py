# telemetry/generators/router_syslog.py
"""
Router syslog generator for the routesim simulator.

Generates syslog events for things an operator would see on the router
console: best-path changes, dropped looping updates, adjacency loss.
"""

from typing import Any

from routesim.engine.clock import EventClock
from routesim.engine.event_bus import EventBus


class RouterSyslogGenerator:
    def __init__(
        self,
        clock: EventClock,
        event_bus: EventBus,
        router_name: str,
        scenario_name: str | None = None,
    ):
        """
        Initialize the generator.

        Args:
            clock: Shared event clock.
            event_bus: Shared event bus.
            router_name: Name of the router emitting logs.
            scenario_name: Scenario name for correlation.
        """
        self.clock = clock
        self.event_bus = event_bus
        self.router_name = router_name
        self.scenario_name = scenario_name

    def emit(
        self,
        message: str,
        severity: str = "info",
        subsystem: str | None = "bgp",
        peer_as: int | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """
        Emit a generic syslog event.

        Args:
            message: Log message.
            severity: syslog severity (info, notice, warning, error).
            subsystem: Subsystem name.
            peer_as: Optional neighbour AS the message is about.
            extra: Optional additional attributes.
        """
        attributes = {
            "router": self.router_name,
            "severity": severity,
            "message": message,
            "subsystem": subsystem,
            "peer_as": peer_as,
        }
        if extra:
            attributes.update(extra)

        self.event_bus.publish(
            {
                "event_type": "router.syslog",
                "timestamp": self.clock.now(),
                "source": {"router": self.router_name, "observer": "router"},
                "attributes": attributes,
                "scenario": {"name": self.scenario_name},
            }
        )

    def best_path_changed(self, prefix: str, description: str) -> None:
        self.emit(
            message=f"%BGP-6-BESTPATH: {prefix} best path now {description}",
            severity="info",
            extra={"bgp_event": "bestpath_change", "prefix": prefix},
        )

    def route_removed(self, prefix: str) -> None:
        self.emit(
            message=f"%BGP-6-BESTPATH: {prefix} no longer reachable",
            severity="notice",
            extra={"bgp_event": "route_removed", "prefix": prefix},
        )

    def loop_detected(self, prefix: str, peer_as: int, as_path: list[int]) -> None:
        """
        Emit a DEBUG message for an update dropped by AS-path loop prevention.
        """
        self.emit(
            message=f"%BGP-7-LOOP: {prefix} from AS{peer_as} dropped, own AS in path {as_path}",
            severity="debug",
            peer_as=peer_as,
            extra={"bgp_event": "loop_detected", "prefix": prefix},
        )

    def session_down(self, peer_as: int, reason: str) -> None:
        """
        Emit a WARNING for a lost adjacency.
        """
        self.emit(
            message=f"%BGP-5-ADJCHANGE: neighbor AS{peer_as} Down: {reason}",
            severity="warning",
            peer_as=peer_as,
            extra={"bgp_event": "neighbor_state_change", "neighbor_state": "down"},
        )
