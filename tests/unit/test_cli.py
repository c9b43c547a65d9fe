"""Unit tests for routesim.cli module.

These tests verify CLI orchestration behaviour, not engine internals.
"""

import json
import logging

import pytest

from routesim.cli import main
from routesim.engine.clock import ActionFailure
from routesim.routing.actions import DumpTables


@pytest.fixture(autouse=True)
def restore_logging():
    """main() configures the routesim logger; undo it after each test."""
    yield
    logger = logging.getLogger("routesim")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------
# Argument and file handling
# ---------------------------------------------------------------------

def test_main_returns_1_when_scenario_not_found(capsys):
    result = main(["does_not_exist.yaml"])
    assert result == 1
    err = capsys.readouterr().err
    assert "Scenario file not found" in err


def test_main_requires_scenario_argument():
    with pytest.raises(SystemExit):
        main([])


def test_main_rejects_unknown_output_mode(tmp_path):
    scenario = tmp_path / "scenario.yaml"
    scenario.write_text("id: test")
    with pytest.raises(SystemExit):
        main([str(scenario), "--output", "xml"])


# ---------------------------------------------------------------------
# Scenario loading
# ---------------------------------------------------------------------

def test_main_returns_2_when_scenario_load_fails(mock_event_bus, mock_scenario_runner, tmp_path, capsys):
    scenario = tmp_path / "scenario.yaml"
    scenario.write_text("id: test")

    mock_scenario_runner.load.side_effect = Exception("Load failed")

    result = main([str(scenario)])
    assert result == 2
    err = capsys.readouterr().err
    assert "Failed to load scenario" in err
    mock_event_bus.subscribe.assert_called()


def test_main_returns_2_for_invalid_scenario_file(tmp_path, capsys):
    scenario = tmp_path / "scenario.yaml"
    scenario.write_text("id: test\nspeakers: []\n")

    assert main([str(scenario)]) == 2
    assert "missing a 'timeline' section" in capsys.readouterr().err


def test_stop_time_flag_overrides_settings(mock_event_bus, mock_scenario_runner, tmp_path):
    scenario = tmp_path / "scenario.yaml"
    scenario.write_text("id: test")

    assert main([str(scenario), "--stop-time", "7", "--log-level", "ERROR"]) == 0
    assert mock_scenario_runner.settings.stop_time == 7
    assert mock_scenario_runner.settings.log_level == "ERROR"
    mock_scenario_runner.run.assert_called_once_with()


# ---------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------

def test_main_returns_3_when_simulation_fails(mock_event_bus, mock_scenario_runner, tmp_path, capsys):
    scenario = tmp_path / "scenario.yaml"
    scenario.write_text("id: test")
    mock_scenario_runner.run.side_effect = RuntimeError("boom")

    assert main([str(scenario)]) == 3
    assert "Simulation failed: boom" in capsys.readouterr().err


def test_main_returns_5_when_actions_failed(mock_event_bus, mock_scenario_runner, tmp_path, capsys):
    scenario = tmp_path / "scenario.yaml"
    scenario.write_text("id: test")
    mock_scenario_runner.run.return_value = [
        ActionFailure(10, DumpTables(), ValueError("leak not selected"))
    ]

    assert main([str(scenario)]) == 5
    err = capsys.readouterr().err
    assert "Scheduled action failed" in err
    assert "leak not selected" in err


def test_cli_mode_prints_tables(mock_event_bus, mock_scenario_runner, tmp_path, capsys):
    scenario = tmp_path / "scenario.yaml"
    scenario.write_text("id: test")

    assert main([str(scenario)]) == 0
    assert "=== ROUTING TABLES (t=25) ===" in capsys.readouterr().out


# ---------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------

def test_json_output_written(mock_event_bus, mock_scenario_runner, tmp_path, capsys):
    scenario = tmp_path / "scenario.yaml"
    scenario.write_text("id: test")
    json_file = tmp_path / "out" / "result.json"

    result = main([str(scenario), "--output", "json", "--json-file", str(json_file)])
    assert result == 0
    assert "Scenario output dumped to" in capsys.readouterr().out

    payload = json.loads(json_file.read_text())
    assert payload["scenario_id"] == "test_scenario"
    assert payload["stop_time"] == 25
    assert payload["tables"] == {}
    assert payload["failures"] == []


def test_json_write_failure_returns_4(mock_event_bus, mock_scenario_runner, tmp_path, capsys):
    scenario = tmp_path / "scenario.yaml"
    scenario.write_text("id: test")
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")

    result = main([str(scenario), "--output", "json", "--json-file", str(blocker / "out.json")])
    assert result == 4
    assert "Failed to write JSON file" in capsys.readouterr().err


# ---------------------------------------------------------------------
# Bundled scenarios, end to end
# ---------------------------------------------------------------------

def test_bundled_leak_scenario(scenario_dir, capsys):
    result = main([str(scenario_dir / "inter_as_leak.yaml")])
    assert result == 0

    out = capsys.readouterr().out
    assert "%BGP-5-UPDATE: 10.1.0.0/16 origin AS65001" in out
    assert "FAULT t=10 ROUTE_LEAK AS65002 10.1.0.0/16" in out
    assert "=== ROUTING TABLES (t=25) ===" in out


def test_bundled_scenario_json_and_log_output(scenario_dir, tmp_path):
    json_file = tmp_path / "run.json"
    log_file = tmp_path / "run.log"

    result = main(
        [
            str(scenario_dir / "wan_failover.yaml"),
            "--output", "json",
            "--json-file", str(json_file),
            "--log-output", str(log_file),
        ]
    )
    assert result == 0

    payload = json.loads(json_file.read_text())
    assert payload["scenario_id"] == "wan_failover"
    via = {r["prefix"]: r for r in payload["tables"]["65010"]}
    assert via["10.1.2.0/24"]["next_hop"] == 65020
    assert any(e["event_type"] == "fault.link_failure" for e in payload["events"])
    assert "LINK_DOWN AS65010 <-> AS65030" in log_file.read_text()
