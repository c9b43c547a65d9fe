"""
Simulation settings.

Settings come from the scenario file's `settings` mapping, then from the
environment (ROUTESIM_STOP_TIME, ROUTESIM_PROPAGATION_DELAY,
ROUTESIM_LOG_LEVEL), then from explicit overrides such as CLI flags.
Later sources win.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

from routesim.errors import ScenarioError

DEFAULT_STOP_TIME = 25
DEFAULT_LOG_LEVEL = "INFO"

ENV_PREFIX = "ROUTESIM_"


@dataclass(frozen=True)
class SimulationSettings:
    stop_time: int | float = DEFAULT_STOP_TIME
    propagation_delay: int | float = 0
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self) -> None:
        if self.stop_time < 0:
            raise ScenarioError(f"stop_time must not be negative, got {self.stop_time}")
        if self.propagation_delay < 0:
            raise ScenarioError(
                f"propagation_delay must not be negative, got {self.propagation_delay}"
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> SimulationSettings:
        """
        Build settings from a scenario `settings` mapping. Unknown keys are
        rejected so typos do not go unnoticed.
        """
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ScenarioError(f"Unknown settings: {', '.join(unknown)}")

        values: dict[str, Any] = {}
        for name in ("stop_time", "propagation_delay"):
            if name in data:
                values[name] = _number(name, data[name])
        if "log_level" in data:
            values["log_level"] = str(data["log_level"]).upper()
        return cls(**values)

    def with_environment(self, environ: Mapping[str, str] | None = None) -> SimulationSettings:
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        for name in ("stop_time", "propagation_delay"):
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw:
                values[name] = _number(ENV_PREFIX + name.upper(), raw)

        level = environ.get(ENV_PREFIX + "LOG_LEVEL")
        if level:
            values["log_level"] = level.upper()

        return replace(self, **values)

    def with_overrides(self, **overrides: Any) -> SimulationSettings:
        """
        Apply overrides, ignoring those that are None.
        """
        values = {key: value for key, value in overrides.items() if value is not None}
        if "log_level" in values:
            values["log_level"] = str(values["log_level"]).upper()
        return replace(self, **values)


def _number(name: str, value: Any) -> int | float:
    if isinstance(value, bool):
        raise ScenarioError(f"{name} must be a number, got {value!r}")
    if isinstance(value, (int, float)):
        return value
    try:
        text = str(value).strip()
        return float(text) if "." in text else int(text)
    except ValueError:
        raise ScenarioError(f"{name} must be a number, got {value!r}") from None
