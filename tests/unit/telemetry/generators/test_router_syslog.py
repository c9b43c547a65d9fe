"""
Unit tests for telemetry/generators/router_syslog.py
"""
from unittest.mock import Mock

import pytest

from routesim.engine.clock import EventClock
from routesim.engine.event_bus import EventBus
from telemetry.generators.router_syslog import RouterSyslogGenerator


@pytest.fixture
def generator():
    clock = Mock(spec=EventClock)
    clock.now.return_value = 12
    return RouterSyslogGenerator(clock, Mock(spec=EventBus), "AS65002", "unit")


def published(generator):
    return generator.event_bus.publish.call_args[0][0]


def test_emit_generic(generator):
    generator.emit("hello", severity="notice", subsystem="rib", peer_as=65001, extra={"k": "v"})

    event = published(generator)
    assert event["event_type"] == "router.syslog"
    assert event["timestamp"] == 12
    assert event["attributes"] == {
        "router": "AS65002",
        "severity": "notice",
        "message": "hello",
        "subsystem": "rib",
        "peer_as": 65001,
        "k": "v",
    }


def test_defaults(generator):
    generator.emit("plain")
    attr = published(generator)["attributes"]
    assert attr["severity"] == "info"
    assert attr["subsystem"] == "bgp"
    assert attr["peer_as"] is None


def test_best_path_changed(generator):
    generator.best_path_changed("10.1.0.0/16", "via AS65001")
    attr = published(generator)["attributes"]
    assert attr["bgp_event"] == "bestpath_change"
    assert "10.1.0.0/16 best path now via AS65001" in attr["message"]


def test_route_removed(generator):
    generator.route_removed("10.1.0.0/16")
    attr = published(generator)["attributes"]
    assert attr["bgp_event"] == "route_removed"
    assert attr["severity"] == "notice"


def test_loop_detected(generator):
    generator.loop_detected("10.1.0.0/16", 65001, [65002, 65001])
    attr = published(generator)["attributes"]
    assert attr["severity"] == "debug"
    assert attr["peer_as"] == 65001
    assert "own AS in path [65002, 65001]" in attr["message"]


def test_session_down(generator):
    generator.session_down(65001, "adjacency disabled")
    attr = published(generator)["attributes"]
    assert attr["severity"] == "warning"
    assert attr["neighbor_state"] == "down"
    assert attr["message"] == "%BGP-5-ADJCHANGE: neighbor AS65001 Down: adjacency disabled"
