# routesim/output/base.py
from __future__ import annotations

from datetime import UTC, datetime
from typing import Iterable


class Adapter:
    """Base adapter for transforming simulator events into log lines."""

    def transform(self, event: dict) -> Iterable[str]:
        """Override in subclasses."""
        return []

    @staticmethod
    def sim_timestamp(event: dict) -> str:
        """Simulated seconds rendered as a syslog-style timestamp from epoch."""
        dt = datetime.fromtimestamp(event.get("timestamp", 0), tz=UTC)
        return dt.strftime("%b %d %H:%M:%S")
