"""
Telemetry generators for the routesim simulator.

Turn speaker and fault activity into structured events on the EventBus.

Generators included:
- BGPUpdateGenerator: emits advertisement, withdrawal and install events
- RouterSyslogGenerator: emits router-style syslog messages
- FaultEventGenerator: emits route-leak and adjacency-failure events
"""

from telemetry.generators.bgp_updates import BGPUpdateGenerator
from telemetry.generators.fault_events import FaultEventGenerator
from telemetry.generators.router_syslog import RouterSyslogGenerator

__all__ = [
    "BGPUpdateGenerator",
    "RouterSyslogGenerator",
    "FaultEventGenerator",
]
