# routesim/output/router_adapter.py
from __future__ import annotations

from typing import Iterable

from .base import Adapter


def _path(as_path: list[int]) -> str:
    return " ".join(str(asn) for asn in as_path) or "-"


class RouterAdapter(Adapter):
    """Transform router.syslog and bgp.* events into syslog-like lines."""

    SEVERITY_MAP = {
        "emergency": 0, "alert": 1, "critical": 2, "error": 3,
        "warning": 4, "notice": 5, "info": 6, "debug": 7
    }

    FACILITY = 1

    def _pri(self, severity: str) -> int:
        return self.FACILITY * 8 + self.SEVERITY_MAP.get(severity, 5)

    def transform(self, event: dict) -> Iterable[str]:
        lines: list[str] = []
        event_type = event.get("event_type")
        ts_str = self.sim_timestamp(event)
        attr = event.get("attributes", {})
        speaker = event.get("source", {}).get("speaker")

        if event_type == "router.syslog":
            severity = attr.get("severity", "notice")
            msg = attr.get("message", "")
            lines.append(f"<{self._pri(severity)}>{ts_str} {attr.get('router', 'R1')} {msg}")

        elif event_type == "bgp.update":
            neighbors = ",".join(f"AS{n}" for n in attr.get("neighbors", []))
            msg = (
                f"%BGP-5-UPDATE: {attr.get('prefix')} origin AS{attr.get('origin_as')}, "
                f"path [{_path(attr.get('as_path', []))}] sent to {neighbors}"
            )
            lines.append(f"<{self._pri('notice')}>{ts_str} AS{speaker} {msg}")

        elif event_type == "bgp.withdraw":
            neighbors = ",".join(f"AS{n}" for n in attr.get("neighbors", []))
            msg = f"%BGP-5-WITHDRAW: {attr.get('prefix')} withdrawn, sent to {neighbors}"
            lines.append(f"<{self._pri('notice')}>{ts_str} AS{speaker} {msg}")

        elif event_type == "bgp.install":
            msg = (
                f"%RIB-5-STATIC: {attr.get('prefix')} via AS{attr.get('next_hop')} "
                f"metric {attr.get('metric')} path [{_path(attr.get('as_path', []))}]"
            )
            lines.append(f"<{self._pri('notice')}>{ts_str} AS{speaker} {msg}")

        return lines
