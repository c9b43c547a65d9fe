"""Unit tests for FaultAdapter."""

import pytest

from routesim.output.fault_adapter import FaultAdapter


@pytest.fixture
def adapter():
    return FaultAdapter()


def test_route_leak_with_previous(adapter):
    event = {
        "event_type": "fault.route_leak",
        "timestamp": 10,
        "source": {"speaker": 65002},
        "attributes": {
            "prefix": "10.1.0.0/16",
            "previous_route": {"path": [65001], "next_hop": 65001, "source": "learned"},
            "leaked_route": {"path": [65002], "next_hop": 65002, "source": "static"},
        },
    }
    assert list(adapter.transform(event)) == [
        "FAULT t=10 ROUTE_LEAK AS65002 10.1.0.0/16: "
        "via AS65001 path [65001] (learned) -> via AS65002 path [65002] (static)"
    ]


def test_route_leak_without_previous(adapter):
    event = {
        "event_type": "fault.route_leak",
        "timestamp": 3,
        "source": {"speaker": 65002},
        "attributes": {
            "prefix": "10.7.0.0/16",
            "previous_route": None,
            "leaked_route": {"path": [], "next_hop": 65002, "source": "static"},
        },
    }
    line = list(adapter.transform(event))[0]
    assert "10.7.0.0/16: none -> via AS65002 path [-] (static)" in line


def test_link_failure(adapter):
    event = {
        "event_type": "fault.link_failure",
        "timestamp": 8,
        "attributes": {
            "endpoints": [65010, 65030],
            "affected_prefixes": {"65010": ["10.1.2.0/24"], "65030": []},
        },
    }
    assert list(adapter.transform(event)) == [
        "FAULT t=8 LINK_DOWN AS65010 <-> AS65030 reselected AS65010: 10.1.2.0/24; AS65030: none"
    ]


def test_other_events_ignored(adapter):
    assert list(adapter.transform({"event_type": "bgp.update"})) == []
