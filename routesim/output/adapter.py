# routesim/output/adapter.py
import sys
from pathlib import Path
from typing import Iterable

from .base import Adapter
from .fault_adapter import FaultAdapter
from .router_adapter import RouterAdapter


class ScenarioAdapter:
    """Route each event to the adapter for its event_type."""

    def __init__(self):
        router = RouterAdapter()
        faults = FaultAdapter()
        self.adapters: dict[str, Adapter] = {
            # speakers
            "router.syslog": router,
            "bgp.update": router,
            "bgp.withdraw": router,
            "bgp.install": router,

            # fault injector
            "fault.route_leak": faults,
            "fault.link_failure": faults,
        }

    def transform(self, event: dict) -> list[str]:
        adapter = self.adapters.get(event.get("event_type"))
        if adapter is None:
            return []
        return [line for line in adapter.transform(event) if line]


def write_scenario_logs(events: Iterable[dict], output_file_path: str) -> int:
    """
    Write the adapter lines for `events` to a file, one per line.

    Events that fail to render are reported on stderr and skipped.
    Returns the number of lines written.
    """
    adapter = ScenarioAdapter()
    output_file = Path(output_file_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    written = 0
    with output_file.open("w", encoding="utf-8") as fh:
        for event in events:
            try:
                lines = adapter.transform(event)
            except Exception as exc:
                print(f"Warning: failed to transform event {event}: {exc}", file=sys.stderr)
                continue
            for line in lines:
                fh.write(f"{line}\n")
            written += len(lines)
    return written
