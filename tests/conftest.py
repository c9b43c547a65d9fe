"""Test configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from routesim.engine.event_bus import EventBus  # noqa: E402
from routesim.routing.network import Network  # noqa: E402

SCENARIO_DIR = project_root / "routesim" / "scenarios"

AS_A = 65001
AS_B = 65002
AS_C = 65003


@pytest.fixture
def scenario_dir() -> Path:
    """Directory holding the bundled scenarios."""
    return SCENARIO_DIR


@pytest.fixture
def recorded_events():
    """An EventBus plus the list of every event published on it."""
    bus = EventBus()
    events: list[dict] = []
    bus.subscribe(events.append)
    return bus, events


@pytest.fixture
def two_as_network(recorded_events) -> Network:
    """AS65001 and AS65002, neighbours of each other."""
    bus, _ = recorded_events
    network = Network(event_bus=bus, scenario_name="two-as")
    network.add_speaker(AS_A, endpoint="10.1.1.2")
    network.add_speaker(AS_B, endpoint="10.2.1.2")
    network.connect(AS_A, AS_B)
    return network


@pytest.fixture
def triangle_network(recorded_events) -> Network:
    """Three speakers, all neighbours of each other."""
    bus, _ = recorded_events
    network = Network(event_bus=bus, scenario_name="triangle")
    for asn in (AS_A, AS_B, AS_C):
        network.add_speaker(asn)
    network.connect(AS_A, AS_B)
    network.connect(AS_A, AS_C)
    network.connect(AS_B, AS_C)
    return network


@pytest.fixture
def mock_event_bus(monkeypatch):
    """Mock EventBus for CLI tests."""
    mock_bus = Mock()
    monkeypatch.setattr("routesim.cli.EventBus", lambda: mock_bus)
    return mock_bus


@pytest.fixture
def mock_scenario_runner(monkeypatch):
    """Mock ScenarioRunner with default configuration."""
    from routesim.config import SimulationSettings

    mock_runner = Mock()
    mock_runner.scenario = {"id": "test_scenario"}
    mock_runner.settings = SimulationSettings()
    mock_runner.run.return_value = []
    mock_runner.final_tables.return_value = {}
    monkeypatch.setattr(
        "routesim.cli.ScenarioRunner", lambda scenario_path, event_bus: mock_runner
    )
    return mock_runner


@pytest.fixture(autouse=True)
def clean_routesim_environment(monkeypatch):
    """Keep ROUTESIM_* variables from the host out of the tests."""
    for name in ("ROUTESIM_STOP_TIME", "ROUTESIM_PROPAGATION_DELAY", "ROUTESIM_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
