"""
routesim: a minimal inter-domain routing control-plane simulator.

Autonomous routing speakers exchange route advertisements over a neighbour
graph, install forwarding state and can be made to leak a route or lose an
adjacency at a scheduled instant.

The package provides:
- EventClock
- EventBus
- Network and RoutingSpeaker
- FaultInjector
- ScenarioRunner
"""

from routesim.engine.clock import EventClock
from routesim.engine.event_bus import EventBus
from routesim.engine.scenario_runner import ScenarioRunner
from routesim.faults.injector import FaultInjector
from routesim.routing.network import Network
from routesim.routing.prefix import Prefix
from routesim.routing.route import Route, RouteSource
from routesim.routing.speaker import RoutingSpeaker, SpeakerState

__all__ = [
    "EventBus",
    "EventClock",
    "FaultInjector",
    "Network",
    "Prefix",
    "Route",
    "RouteSource",
    "RoutingSpeaker",
    "ScenarioRunner",
    "SpeakerState",
]
