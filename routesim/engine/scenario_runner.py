"""
Scenario runner for the routesim control-plane simulator.

Responsibilities:

- Load a scenario definition from YAML
- Build the speaker graph it describes
- Schedule every timeline entry on the event clock
- Run the clock to the stop time and expose the resulting tables

A scenario looks like this:

    id: inter_as_route_leak
    settings:
      stop_time: 25
    speakers:
      - asn: 65001
      - asn: 65002
    adjacencies:
      - [65001, 65002]
    timeline:
      - t: 2
        action: advertise
        speaker: 65001
        prefix: 10.1.0.0/16
      - t: 10
        action: leak
        speaker: 65002
        prefix: 10.1.0.0/16
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from routesim.config import SimulationSettings
from routesim.engine.clock import ActionFailure, EventClock
from routesim.engine.event_bus import EventBus
from routesim.errors import ScenarioError
from routesim.faults.injector import FaultInjector
from routesim.routing.network import Network, TableDump, TableSnapshot
from routesim.routing.prefix import Prefix

logger = logging.getLogger(__name__)

ACTIONS = ("advertise", "withdraw", "install", "leak", "link_failure", "dump")

_REQUIRED = {
    "advertise": ("speaker", "prefix"),
    "withdraw": ("speaker", "prefix"),
    "install": ("speaker", "next_hop"),
    "leak": ("speaker", "prefix"),
    "link_failure": ("between",),
    "dump": (),
}


class ScenarioRunner:
    """
    Executes a single routing scenario in simulated time.
    """

    def __init__(self, scenario_path: Path | None = None, event_bus: EventBus | None = None) -> None:
        self.scenario_path = scenario_path
        self.event_bus = event_bus if event_bus is not None else EventBus()
        self.scenario: dict[str, Any] = {}
        self.settings = SimulationSettings()
        self.network: Network | None = None
        self.injector: FaultInjector | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], event_bus: EventBus | None = None) -> ScenarioRunner:
        runner = cls(event_bus=event_bus)
        runner.load_dict(data)
        return runner

    # -----------------------------------------------------------------
    # Loading
    # -----------------------------------------------------------------

    def load(self) -> None:
        """
        Load the scenario YAML from disk and validate its structure.
        """
        if self.scenario_path is None:
            raise ScenarioError("No scenario path given")

        with self.scenario_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)

        self.load_dict(data)
        self.settings = self.settings.with_environment()

    def load_dict(self, data: Any) -> None:
        if not isinstance(data, dict):
            raise ScenarioError("Scenario file must be a YAML mapping (dict)")

        for key in ("speakers", "timeline"):
            if key not in data:
                raise ScenarioError(f"Scenario is missing a '{key}' section")
            if not isinstance(data[key], list):
                raise ScenarioError(f"'{key}' must be a list")

        asns = self._validate_speakers(data["speakers"])
        self._validate_adjacencies(data.get("adjacencies", []), asns)
        for index, entry in enumerate(data["timeline"]):
            self._validate_entry(index, entry, asns)

        self.settings = SimulationSettings.from_mapping(data.get("settings"))
        self.scenario = data
        self.network = None
        self.injector = None

    @staticmethod
    def _validate_speakers(speakers: list[Any]) -> set[int]:
        asns: set[int] = set()
        for entry in speakers:
            if not isinstance(entry, dict) or not isinstance(entry.get("asn"), int):
                raise ScenarioError(f"Speaker entry needs an integer 'asn': {entry!r}")
            if entry["asn"] in asns:
                raise ScenarioError(f"Duplicate speaker AS{entry['asn']}")
            asns.add(entry["asn"])
        return asns

    @staticmethod
    def _validate_adjacencies(adjacencies: Any, asns: set[int]) -> None:
        if not isinstance(adjacencies, list):
            raise ScenarioError("'adjacencies' must be a list of AS pairs")
        for pair in adjacencies:
            if not isinstance(pair, list) or len(pair) != 2:
                raise ScenarioError(f"Adjacency must be a pair of AS numbers: {pair!r}")
            for asn in pair:
                if asn not in asns:
                    raise ScenarioError(f"Adjacency {pair!r} refers to unknown AS{asn}")

    @staticmethod
    def _validate_entry(index: int, entry: Any, asns: set[int]) -> None:
        if not isinstance(entry, dict):
            raise ScenarioError(f"Timeline entry {index} must be a mapping")

        t = entry.get("t", 0)
        if isinstance(t, bool) or not isinstance(t, (int, float)) or t < 0:
            raise ScenarioError(f"Timeline entry {index} has invalid time {t!r}")

        action = entry.get("action")
        if action not in ACTIONS:
            raise ScenarioError(f"Timeline entry {index} has unknown action {action!r}")

        missing = [key for key in _REQUIRED[action] if key not in entry]
        if action == "install" and "prefix" not in entry and "network" not in entry:
            missing.append("prefix")
        if missing:
            raise ScenarioError(
                f"Timeline entry {index} ({action}) is missing {', '.join(missing)}"
            )

        try:
            if "prefix" in entry:
                Prefix.parse(entry["prefix"])
            elif "network" in entry:
                Prefix.from_mask(entry["network"], entry.get("mask", 32))
        except ValueError as exc:
            raise ScenarioError(f"Timeline entry {index} has an invalid prefix: {exc}") from None

        if "path" in entry:
            path = entry["path"]
            if not isinstance(path, list) or not all(_is_int(asn) for asn in path):
                raise ScenarioError(
                    f"Timeline entry {index} 'path' must be a list of AS numbers, got {path!r}"
                )
        if "metric" in entry and (not _is_int(entry["metric"]) or entry["metric"] < 0):
            raise ScenarioError(
                f"Timeline entry {index} 'metric' must be a non-negative integer, "
                f"got {entry['metric']!r}"
            )
        if "next_hop" in entry:
            if not _is_int(entry["next_hop"]):
                raise ScenarioError(
                    f"Timeline entry {index} 'next_hop' must be an AS number, "
                    f"got {entry['next_hop']!r}"
                )
            if entry["next_hop"] not in asns:
                raise ScenarioError(
                    f"Timeline entry {index} next_hop refers to unknown AS{entry['next_hop']}"
                )

        named = [entry["speaker"]] if "speaker" in entry else list(entry.get("between", []))
        if action == "link_failure" and len(named) != 2:
            raise ScenarioError(f"Timeline entry {index} 'between' must name two speakers")
        for asn in named:
            if asn not in asns:
                raise ScenarioError(f"Timeline entry {index} refers to unknown AS{asn}")

    # -----------------------------------------------------------------
    # Building
    # -----------------------------------------------------------------

    def build(self) -> Network:
        """
        Create the network and schedule every timeline entry.
        """
        if not self.scenario:
            raise ScenarioError("Scenario not loaded")

        network = Network(
            clock=EventClock(),
            event_bus=self.event_bus,
            propagation_delay=self.settings.propagation_delay,
            scenario_name=self.scenario.get("id"),
        )
        for entry in self.scenario["speakers"]:
            network.add_speaker(entry["asn"], endpoint=entry.get("endpoint"))
        for a, b in self.scenario.get("adjacencies", []):
            network.connect(a, b)

        injector = FaultInjector(network)
        for entry in self.scenario["timeline"]:
            self._schedule(network, injector, entry)

        logger.info(
            "Scenario %s: %d speakers, %d timeline entries",
            self.scenario.get("id"), len(network.speakers), len(self.scenario["timeline"]),
        )
        self.network = network
        self.injector = injector
        return network

    @staticmethod
    def _schedule(network: Network, injector: FaultInjector, entry: dict[str, Any]) -> None:
        t = entry.get("t", 0)
        action = entry["action"]

        if action == "advertise":
            network.schedule_advertise(t, entry["speaker"], entry["prefix"], entry.get("path"))
        elif action == "withdraw":
            network.schedule_withdraw(t, entry["speaker"], entry["prefix"])
        elif action == "install":
            network.schedule_install(
                t,
                entry["speaker"],
                _entry_prefix(entry),
                entry["next_hop"],
                metric=entry.get("metric", 1),
                path=entry.get("path"),
            )
        elif action == "leak":
            injector.schedule_leak(
                t,
                entry["speaker"],
                entry["prefix"],
                path=entry.get("path"),
                next_hop=entry.get("next_hop"),
                metric=entry.get("metric", 1),
                propagate=bool(entry.get("propagate", False)),
            )
        elif action == "link_failure":
            a, b = entry["between"]
            injector.schedule_link_failure(t, a, b, bool(entry.get("withdraw_routes", True)))
        elif action == "dump":
            network.schedule_dump(t, entry.get("label"))

    # -----------------------------------------------------------------
    # Running
    # -----------------------------------------------------------------

    def run(self, stop_time: int | float | None = None) -> list[ActionFailure]:
        """
        Run the scenario up to `stop_time` (default: the configured stop
        time). May be called repeatedly with increasing stop times.
        """
        network = self.network or self.build()
        stop = self.settings.stop_time if stop_time is None else stop_time
        failures = network.run(stop)
        for failure in failures:
            logger.warning("Scheduled action failed: %s", failure)
        return failures

    def final_tables(self) -> dict[int, TableDump]:
        if self.network is None:
            raise ScenarioError("Scenario has not been run")
        return self.network.dump_all()

    @property
    def snapshots(self) -> dict[int | float, dict[int, TableDump]]:
        return self.network.snapshots if self.network else {}

    @property
    def dumps(self) -> list[TableSnapshot]:
        return list(self.network.dumps) if self.network else []

    def reset(self) -> None:
        """
        Discard the built network so the next run starts from time zero.
        """
        self.network = None
        self.injector = None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _entry_prefix(entry: dict[str, Any]) -> Prefix:
    if "prefix" in entry:
        return Prefix.parse(entry["prefix"])
    return Prefix.from_mask(entry["network"], entry.get("mask", 32))
