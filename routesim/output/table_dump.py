"""
Routing table dumps for reporting.

`dump` is a pure read of a speaker's table, sorted by prefix so text output
is reproducible. `format_tables` renders one block per speaker.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from routesim.routing.prefix import Prefix
from routesim.routing.route import Route
from routesim.routing.speaker import RoutingSpeaker

HEADER = f"  {'Prefix':<20} {'Next hop':<10} {'Source':<8} {'Metric':<7} Path"


def dump(speaker: RoutingSpeaker) -> list[tuple[Prefix, Route]]:
    return speaker.dump()


def format_table(asn: int, table: Iterable[tuple[Prefix, Route]], title: str | None = None) -> list[str]:
    lines = [f"{title or 'Routing table'} AS{asn}:", HEADER]
    rows = list(table)
    if not rows:
        lines.append("  (empty)")
    for prefix, route in rows:
        path = " ".join(str(asn) for asn in route.path) or "-"
        lines.append(
            f"  {str(prefix):<20} AS{route.next_hop:<8} {route.source.value:<8} {route.metric:<7} {path}"
        )
    return lines


def format_tables(tables: Mapping[int, Iterable[tuple[Prefix, Route]]], time: int | float | None = None) -> str:
    """
    Render every speaker's table, in AS number order.
    """
    heading = "=== ROUTING TABLES ===" if time is None else f"=== ROUTING TABLES (t={time}) ==="
    lines = [heading]
    for asn in sorted(tables):
        lines.extend(format_table(asn, tables[asn]))
    return "\n".join(lines)


def tables_to_dict(tables: Mapping[int, Iterable[tuple[Prefix, Route]]]) -> dict[str, list[dict]]:
    return {str(asn): [route.to_dict() for _, route in tables[asn]] for asn in sorted(tables)}
