# routesim/cli.py

from __future__ import annotations
import argparse
import sys
from pathlib import Path
import json
from typing import Any, List
import signal

from routesim.config import DEFAULT_LOG_LEVEL
from routesim.engine.event_bus import EventBus
from routesim.engine.scenario_runner import ScenarioRunner
from routesim.log import set_logging
from routesim.output.adapter import ScenarioAdapter, write_scenario_logs
from routesim.output.table_dump import format_tables, tables_to_dict


def main(argv: list[str] | None = None) -> int | None:
    parser = argparse.ArgumentParser(
        prog="routesim",
        description="Run an inter-domain routing scenario and dump the resulting tables",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "scenario",
        type=Path,
        help="Path to the scenario YAML file",
    )
    parser.add_argument(
        "--stop-time",
        type=float,
        default=None,
        help="Simulated time to stop at (overrides the scenario's settings.stop_time)",
    )
    parser.add_argument(
        "--output",
        choices=["cli", "json"],
        default="cli",
        help="Output mode: 'cli' prints lines and tables to stdout; 'json' dumps events and tables to a JSON file",
    )
    parser.add_argument(
        "--json-file",
        type=Path,
        default=Path("routesim_output.json"),
        help="Path to JSON output file if --output=json",
    )
    parser.add_argument(
        "--log-output",
        type=Path,
        default=None,
        help="Also write the transformed event lines to this file",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help=f"Logging level (default: ROUTESIM_LOG_LEVEL or {DEFAULT_LOG_LEVEL})",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Write detailed logs to this file",
    )

    args = parser.parse_args(argv)

    if not args.scenario.exists():
        print(f"Scenario file not found: {args.scenario}", file=sys.stderr)
        return 1

    event_bus = EventBus()
    adapter = ScenarioAdapter()

    transformed_lines: List[str] = []
    recorded_events: List[dict[str, Any]] = []

    def handle_event(event: dict[str, Any]) -> None:
        recorded_events.append(event)
        for line in adapter.transform(event):
            if not line:
                continue
            transformed_lines.append(line)
            if args.output == "cli":
                print(line)

    event_bus.subscribe(handle_event)

    runner = ScenarioRunner(scenario_path=args.scenario, event_bus=event_bus)

    try:
        runner.load()
        runner.settings = runner.settings.with_overrides(
            stop_time=args.stop_time, log_level=args.log_level
        )
    except Exception as exc:
        print(f"Failed to load scenario: {exc}", file=sys.stderr)
        return 2

    set_logging(runner.settings.log_level, str(args.log_file) if args.log_file else None)

    try:
        failures = runner.run()
        tables = runner.final_tables()
    except Exception as exc:
        print(f"Simulation failed: {exc}", file=sys.stderr)
        return 3

    if args.output == "cli":
        print()
        print(format_tables(tables, time=runner.settings.stop_time))

    if args.log_output:
        write_scenario_logs(recorded_events, str(args.log_output))

    if args.output == "json":
        payload = {
            "scenario_id": runner.scenario.get("id"),
            "stop_time": runner.settings.stop_time,
            "lines": transformed_lines,
            "events": recorded_events,
            "tables": tables_to_dict(tables),
            "failures": [str(f) for f in failures],
        }
        try:
            args.json_file.parent.mkdir(parents=True, exist_ok=True)
            with args.json_file.open("w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, default=str)
            print(f"Scenario output dumped to {args.json_file}")
        except Exception as exc:
            print(f"Failed to write JSON file: {exc}", file=sys.stderr)
            return 4

    if failures:
        for failure in failures:
            print(f"Scheduled action failed: {failure}", file=sys.stderr)
        return 5

    return 0  # success


if __name__ == "__main__":

    signal.signal(signal.SIGPIPE, signal.SIG_DFL)  # Ignore broken pipe
    sys.exit(main())
