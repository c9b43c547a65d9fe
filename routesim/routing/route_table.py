"""
Per-speaker route table.

For every destination prefix the table keeps all known alternates and the
single selected route. Selection is deterministic:

1. source preference: static installs, then locally originated, then learned
2. lower metric
3. shorter AS path
4. smaller next-hop AS number

Within one source and metric this is "shortest path wins, ties go to the
smaller next hop".
"""

from __future__ import annotations

from dataclasses import dataclass, field

from routesim.errors import NoRouteError
from routesim.routing.prefix import IPAddress, Prefix
from routesim.routing.route import Route, RouteSource

AlternateKey = tuple[RouteSource, int]


@dataclass
class TableEntry:
    selected: Route
    alternates: dict[AlternateKey, Route] = field(default_factory=dict)


def _best(alternates: dict[AlternateKey, Route]) -> Route | None:
    if not alternates:
        return None
    return min(alternates.values(), key=Route.preference_key)


class RouteTable:
    """
    Mapping from prefix to selected route and alternates.

    Alternates are keyed by (source, next hop): inserting a route from the
    same next hop and source replaces the earlier one.
    """

    def __init__(self) -> None:
        self._entries: dict[Prefix, TableEntry] = {}

    def insert(self, route: Route) -> bool:
        """
        Add or replace an alternate and recompute the selected route.

        Returns True if the selected route for the prefix changed.
        """
        key = (route.source, route.next_hop)
        entry = self._entries.get(route.prefix)

        if entry is None:
            self._entries[route.prefix] = TableEntry(selected=route, alternates={key: route})
            return True

        alternates = {**entry.alternates, key: route}
        best = _best(alternates)
        entry.alternates = alternates
        changed = best != entry.selected
        entry.selected = best
        return changed

    def select(self, prefix: Prefix) -> Route:
        """
        Return the selected route for a prefix.

        Raises NoRouteError if the prefix is unknown.
        """
        entry = self._entries.get(prefix)
        if entry is None:
            raise NoRouteError(f"No route to {prefix}")
        return entry.selected

    def get(self, prefix: Prefix) -> Route | None:
        entry = self._entries.get(prefix)
        return entry.selected if entry else None

    def withdraw(
        self, prefix: Prefix, next_hop: int, source: RouteSource | None = None
    ) -> bool:
        """
        Remove alternates for `prefix` reached via `next_hop`.

        If `source` is given only alternates of that source are removed.
        The entry disappears when no alternates remain. Returns True if the
        selected route changed (including being cleared).
        """
        entry = self._entries.get(prefix)
        if entry is None:
            return False

        doomed = [
            key
            for key in entry.alternates
            if key[1] == next_hop and (source is None or key[0] is source)
        ]
        if not doomed:
            return False

        for key in doomed:
            del entry.alternates[key]

        best = _best(entry.alternates)
        if best is None:
            del self._entries[prefix]
            return True

        changed = best != entry.selected
        entry.selected = best
        return changed

    def withdraw_next_hop(self, next_hop: int) -> list[Prefix]:
        """
        Remove every alternate reached via `next_hop`.

        Returns the prefixes whose selected route changed, in prefix order.
        """
        changed = []
        for prefix in sorted(self._entries):
            if self.withdraw(prefix, next_hop):
                changed.append(prefix)
        return changed

    def alternates(self, prefix: Prefix) -> list[Route]:
        """
        All known routes for a prefix, best first.
        """
        entry = self._entries.get(prefix)
        if entry is None:
            return []
        return sorted(entry.alternates.values(), key=Route.preference_key)

    def prefixes(self) -> list[Prefix]:
        return sorted(self._entries)

    def lookup(self, address: str | IPAddress) -> Route:
        """
        Longest-prefix match of an address against the selected routes.
        """
        matches = [prefix for prefix in self._entries if prefix.contains(address)]
        if not matches:
            raise NoRouteError(f"No route to host {address}")
        best = max(matches, key=lambda p: p.length)
        return self._entries[best].selected

    def dump(self) -> list[tuple[Prefix, Route]]:
        """
        Selected routes sorted by prefix.
        """
        return [(prefix, self._entries[prefix].selected) for prefix in sorted(self._entries)]

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, prefix: object) -> bool:
        return prefix in self._entries

    def __len__(self) -> int:
        return len(self._entries)
