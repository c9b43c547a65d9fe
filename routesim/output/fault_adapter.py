"""
Adapter for fault injector events.

Faults are rendered as FAULT lines, one per event, so a run's output can be
grepped for the moment things went wrong.
"""

from __future__ import annotations

from collections.abc import Iterable

from .base import Adapter


def _describe(route: dict | None) -> str:
    if not route:
        return "none"
    path = " ".join(str(asn) for asn in route.get("path", [])) or "-"
    return f"via AS{route.get('next_hop')} path [{path}] ({route.get('source')})"


class FaultAdapter(Adapter):
    """Transforms fault.* events into FAULT lines."""

    def transform(self, event: dict) -> Iterable[str]:
        lines: list[str] = []
        event_type = event.get("event_type")
        attr = event.get("attributes", {})
        t = event.get("timestamp", 0)

        if event_type == "fault.route_leak":
            speaker = event.get("source", {}).get("speaker")
            lines.append(
                f"FAULT t={t} ROUTE_LEAK AS{speaker} {attr.get('prefix')}: "
                f"{_describe(attr.get('previous_route'))} -> {_describe(attr.get('leaked_route'))}"
            )

        elif event_type == "fault.link_failure":
            a, b = attr.get("endpoints", [None, None])
            affected = attr.get("affected_prefixes", {})
            detail = "; ".join(
                f"AS{asn}: {', '.join(prefixes) or 'none'}" for asn, prefixes in affected.items()
            )
            lines.append(f"FAULT t={t} LINK_DOWN AS{a} <-> AS{b} reselected {detail or 'none'}")

        return lines
